"""
Bulk conversion of PNG directory trees.

Every PNG under an input directory is converted into a mirrored SVG tree,
either one file at a time or split into contiguous chunks that run on a thread
pool. Workers never touch shared counters: each chunk returns its
``FileResult`` records and the driver folds them into ``ConversionStats`` once
all chunks are done.
"""

import concurrent.futures
import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .converter import PngToSvgConverter
from .exceptions import InputNotFoundError
from .options import ConversionOptions, get_preset_options

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

PathLike = Union[str, Path]


@dataclass(frozen=True)
class BulkConversionOptions:
    """Conversion options plus the controls of a bulk run."""
    conversion: ConversionOptions = field(default_factory=ConversionOptions)
    parallel: bool = False
    max_workers: Optional[int] = None
    recursive: bool = False
    overwrite: bool = False
    min_size_kb: Optional[float] = None
    max_size_kb: Optional[float] = None

    @classmethod
    def build(
        cls,
        preset: Optional[str] = None,
        threshold: Optional[int] = None,
        turd_size: Optional[int] = None,
        opt_curve: Optional[bool] = None,
        turn_policy: Optional[str] = None,
        **controls,
    ) -> "BulkConversionOptions":
        """Layer explicit option values over an optional preset."""
        conversion = get_preset_options(preset).override(
            threshold=threshold,
            turd_size=turd_size,
            opt_curve=opt_curve,
            turn_policy=turn_policy,
        )
        return cls(conversion=conversion, **controls)


class FileStatus(str, Enum):
    converted = "converted"
    failed = "failed"
    skipped = "skipped"


@dataclass
class FileResult:
    source: Path
    destination: Path
    status: FileStatus
    elapsed: float = 0.0
    error: Optional[str] = None


@dataclass
class ConversionStats:
    total: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    filtered_out: int = 0
    start_time: float = 0.0
    end_time: float = 0.0
    results: List[FileResult] = field(default_factory=list)

    def record(self, result: FileResult) -> None:
        self.results.append(result)
        if result.status == FileStatus.converted:
            self.successful += 1
        elif result.status == FileStatus.failed:
            self.failed += 1
        else:
            self.skipped += 1

    @property
    def duration(self) -> float:
        return max(self.end_time - self.start_time, 0.0)

    @property
    def average_per_file(self) -> Optional[float]:
        """Seconds per successfully converted file, None when nothing converted."""
        if self.successful == 0:
            return None
        return self.duration / self.successful


def find_png_files(directory: PathLike, recursive: bool = False) -> List[Path]:
    """All ``.png`` files (any case) in ``directory``, optionally descending into subdirectories."""
    directory = Path(directory)
    files = []
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if recursive:
                files.extend(find_png_files(entry, recursive=True))
        elif entry.is_file() and entry.suffix.lower() == ".png":
            files.append(entry)
    return files


def filter_by_size(
    files: Sequence[Path],
    min_kb: Optional[float] = None,
    max_kb: Optional[float] = None,
) -> List[Path]:
    """Drop files smaller than ``min_kb`` or larger than ``max_kb``; the bounds themselves are kept."""
    if min_kb is None and max_kb is None:
        return list(files)

    kept = []
    for path in files:
        size_kb = path.stat().st_size / 1024
        if min_kb is not None and size_kb < min_kb:
            continue
        if max_kb is not None and size_kb > max_kb:
            continue
        kept.append(path)
    return kept


def output_path_for(source: Path, input_dir: Path, output_dir: Path) -> Path:
    """Mirror ``source`` under ``output_dir`` with an ``.svg`` extension."""
    relative = source.relative_to(input_dir)
    return (output_dir / relative).with_suffix(".svg")


def chunk(items: Sequence, size: int) -> List[list]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BulkConverter:
    """Convert every PNG under a directory into a mirrored SVG tree."""

    def __init__(
        self,
        converter: Optional[PngToSvgConverter] = None,
        on_result: Optional[Callable[[FileResult], None]] = None,
    ):
        self.converter = converter or PngToSvgConverter()
        # Called once per processed file; from worker threads in parallel mode
        self.on_result = on_result

    def convert_directory(
        self,
        input_dir: PathLike,
        output_dir: PathLike,
        options: Optional[BulkConversionOptions] = None,
    ) -> ConversionStats:
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        options = options or BulkConversionOptions()

        if not input_dir.is_dir():
            raise InputNotFoundError(input_dir)

        logger.info("Starting bulk conversion: %s -> %s", input_dir, output_dir)
        stats = ConversionStats(start_time=time.perf_counter())

        png_files = find_png_files(input_dir, options.recursive)
        stats.total = len(png_files)
        logger.info("Found %d PNG files", len(png_files))

        if not png_files:
            logger.info("No PNG files found.")
            stats.end_time = time.perf_counter()
            return stats

        output_dir.mkdir(parents=True, exist_ok=True)

        files = filter_by_size(png_files, options.min_size_kb, options.max_size_kb)
        stats.filtered_out = len(png_files) - len(files)
        logger.info("After size filtering: %d files", len(files))

        if options.parallel and len(files) > 1:
            results = self._convert_in_parallel(files, input_dir, output_dir, options)
        else:
            results = self._convert_sequentially(files, input_dir, output_dir, options)

        for result in results:
            stats.record(result)
        stats.end_time = time.perf_counter()
        self._log_summary(stats)
        return stats

    def _convert_sequentially(self, files, input_dir, output_dir, options) -> List[FileResult]:
        logger.info("Converting files sequentially...")
        results = []
        for index, source in enumerate(files, start=1):
            label = f"[{index}/{len(files)}]"
            results.append(self._convert_one(source, input_dir, output_dir, options, label))
        return results

    def _convert_in_parallel(self, files, input_dir, output_dir, options) -> List[FileResult]:
        workers = min(options.max_workers or DEFAULT_MAX_WORKERS, len(files))
        chunks = chunk(files, math.ceil(len(files) / workers))
        logger.info("Converting files in parallel (%d workers)...", len(chunks))

        results = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(chunks)) as executor:
            futures = [
                executor.submit(self._process_chunk, files_chunk, input_dir, output_dir, options, index)
                for index, files_chunk in enumerate(chunks)
            ]
            for future in concurrent.futures.as_completed(futures):
                results.extend(future.result())
        return results

    def _process_chunk(self, files, input_dir, output_dir, options, worker_index) -> List[FileResult]:
        label = f"[Worker {worker_index + 1}]"
        return [self._convert_one(source, input_dir, output_dir, options, label) for source in files]

    def _convert_one(self, source, input_dir, output_dir, options, label) -> FileResult:
        destination = output_path_for(source, input_dir, output_dir)
        relative = source.relative_to(input_dir)
        logger.info("%s %s", label, relative)

        if not options.overwrite and destination.exists():
            logger.info("%s    Skipped (already exists)", label)
            result = FileResult(source, destination, FileStatus.skipped)
        else:
            destination.parent.mkdir(parents=True, exist_ok=True)
            start = time.perf_counter()
            try:
                self.converter.convert_file(source, destination, options.conversion)
            except Exception as e:
                logger.info("%s    Failed: %s", label, e)
                result = FileResult(source, destination, FileStatus.failed,
                                    time.perf_counter() - start, str(e))
            else:
                elapsed = time.perf_counter() - start
                logger.info("%s    Converted in %.0fms", label, elapsed * 1000)
                result = FileResult(source, destination, FileStatus.converted, elapsed)

        if self.on_result is not None:
            self.on_result(result)
        return result

    def _log_summary(self, stats: ConversionStats) -> None:
        logger.info(
            "Bulk conversion complete: %d total, %d successful, %d failed, %d skipped in %.2fs",
            stats.total, stats.successful, stats.failed, stats.skipped, stats.duration,
        )
        if stats.average_per_file is not None:
            logger.info("Average: %.2fs per file", stats.average_per_file)
