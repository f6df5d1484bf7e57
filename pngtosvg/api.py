"""
REST service exposing the converter over HTTP.

Endpoints:
- GET  /                  upload form
- GET  /health            liveness check
- GET  /api/presets       the preset option bundles
- POST /api/convert       one PNG -> SVG
- POST /api/posterize     one PNG -> posterized SVG
- POST /api/bulk-convert  up to MAX_BULK_FILES PNGs -> JSON with embedded SVGs
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates

from .config import Settings, load_settings
from .converter import PngToSvgConverter
from .options import ConversionOptions, TurnPolicy, get_preset_options, list_presets
from .tracing import DEFAULT_POSTERIZE_STEPS

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

SVG_MEDIA_TYPE = "image/svg+xml"
PNG_SUFFIX = re.compile(r"\.png$", re.IGNORECASE)


class UploadRejected(Exception):
    """A request that is answered with HTTP 400 and ``{"error": message}``."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _read_png(upload: UploadFile, max_bytes: int) -> bytes:
    if upload.content_type != "image/png":
        raise UploadRejected("Only PNG files are allowed")
    too_large = f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
    # size is known up front for spooled multipart uploads
    if upload.size is not None and upload.size > max_bytes:
        raise UploadRejected(too_large)
    data = upload.file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise UploadRejected(too_large)
    return data


def _parse_int(value: Optional[str], name: str, minimum: Optional[int] = None,
               maximum: Optional[int] = None) -> Optional[int]:
    if not value:
        return None
    try:
        number = int(value)
    except ValueError:
        raise UploadRejected(f"Invalid {name}: {value!r}")
    if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
        raise UploadRejected(f"Invalid {name}: {value!r} is out of range")
    return number


def parse_form_options(
    preset: Optional[str] = None,
    threshold: Optional[str] = None,
    turd_size: Optional[str] = None,
    opt_curve: Optional[str] = None,
    turn_policy: Optional[str] = None,
) -> ConversionOptions:
    """Preset first, then any explicit form fields on top."""
    options = get_preset_options(preset) if preset else ConversionOptions()
    if turn_policy and turn_policy not in TurnPolicy.__members__:
        raise UploadRejected(f"Invalid turnPolicy: {turn_policy!r}")
    fields = ConversionOptions.from_mapping({
        "threshold": _parse_int(threshold, "threshold", 0, 255),
        "turdSize": _parse_int(turd_size, "turdSize", 0),
        "optCurve": (opt_curve == "true") if opt_curve is not None else None,
        "turnPolicy": turn_policy or None,
    })
    return options.merged_with(fields)


def _failure(message: str, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message, "details": str(error)})


def create_app(settings: Optional[Settings] = None,
               converter: Optional[PngToSvgConverter] = None) -> FastAPI:
    settings = settings or load_settings()
    converter = converter or PngToSvgConverter(temp_dir=settings.TEMP_DIR or None)
    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

    app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )

    @app.exception_handler(UploadRejected)
    async def upload_rejected_handler(request: Request, exc: UploadRejected):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        return templates.TemplateResponse(
            request,
            "index.html",
            {"presets": list_presets(), "turn_policies": [p.value for p in TurnPolicy]},
        )

    @app.get("/health")
    def health():
        return {"status": "OK", "message": "PNG to SVG API is running"}

    @app.get("/api/presets")
    def presets():
        return list_presets()

    @app.post("/api/convert")
    def convert(
        image: Optional[UploadFile] = File(None),
        preset: Optional[str] = Form(None),
        threshold: Optional[str] = Form(None),
        turdSize: Optional[str] = Form(None),
        optCurve: Optional[str] = Form(None),
        turnPolicy: Optional[str] = Form(None),
    ):
        if image is None:
            raise UploadRejected("No image file provided")
        data = _read_png(image, settings.MAX_FILE_SIZE)
        options = parse_form_options(preset, threshold, turdSize, optCurve, turnPolicy)
        logger.info("Converting image with options: %s", options.to_dict())

        try:
            svg = converter.convert_buffer(data, options)
        except Exception as e:
            logger.error("Conversion error: %s", e)
            return _failure("Failed to convert image", e)
        return Response(content=svg, media_type=SVG_MEDIA_TYPE)

    @app.post("/api/posterize")
    def posterize(
        image: Optional[UploadFile] = File(None),
        steps: Optional[str] = Form(None),
    ):
        if image is None:
            raise UploadRejected("No image file provided")
        data = _read_png(image, settings.MAX_FILE_SIZE)
        try:
            step_count = int(steps) if steps else DEFAULT_POSTERIZE_STEPS
        except ValueError:
            step_count = DEFAULT_POSTERIZE_STEPS
        if step_count < 1:
            step_count = DEFAULT_POSTERIZE_STEPS

        try:
            svg = converter.convert_buffer_to_posterized(data, step_count)
        except Exception as e:
            logger.error("Posterized conversion error: %s", e)
            return _failure("Failed to convert image", e)
        return Response(content=svg, media_type=SVG_MEDIA_TYPE)

    @app.post("/api/bulk-convert")
    def bulk_convert(
        images: Optional[List[UploadFile]] = File(None),
        preset: Optional[str] = Form(None),
        threshold: Optional[str] = Form(None),
        turdSize: Optional[str] = Form(None),
        optCurve: Optional[str] = Form(None),
        turnPolicy: Optional[str] = Form(None),
    ):
        if not images:
            raise UploadRejected("No image files provided")
        if len(images) > settings.MAX_BULK_FILES:
            raise UploadRejected(f"Too many files. Maximum is {settings.MAX_BULK_FILES}.")
        payloads = [_read_png(upload, settings.MAX_FILE_SIZE) for upload in images]
        options = parse_form_options(preset, threshold, turdSize, optCurve, turnPolicy)
        logger.info("Converting %d images in bulk...", len(images))

        results = []
        successful = 0
        failed = 0
        for index, (upload, data) in enumerate(zip(images, payloads), start=1):
            filename = upload.filename or f"image_{index}.png"
            try:
                svg = converter.convert_buffer(data, options)
            except Exception as e:
                logger.error("Failed to convert %s: %s", filename, e)
                results.append({"filename": filename, "success": False, "error": str(e)})
                failed += 1
                continue
            results.append({
                "filename": filename,
                "svgFilename": PNG_SUFFIX.sub(".svg", filename),
                "success": True,
                "svg": svg,
                "size": len(svg),
            })
            successful += 1

        return {
            "summary": {
                "total": len(images),
                "successful": successful,
                "failed": failed,
                "processing_time": datetime.now(timezone.utc).isoformat(),
            },
            "results": results,
        }

    return app
