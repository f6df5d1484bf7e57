"""
Conversion options and named presets.

Every field of ``ConversionOptions`` is optional. ``None`` means "not set" and
is filled from ``DEFAULT_OPTIONS`` when the options reach the tracer.
"""

import logging
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .exceptions import UnknownPresetError

logger = logging.getLogger(__name__)


class TurnPolicy(str, Enum):
    """How the tracer resolves ambiguous pixel junctions."""
    black = "black"
    white = "white"
    left = "left"
    right = "right"
    minority = "minority"
    majority = "majority"


# potrace's POTRACE_TURNPOLICY_* constants
TURN_POLICY_CODES = {
    TurnPolicy.black: 0,
    TurnPolicy.white: 1,
    TurnPolicy.left: 2,
    TurnPolicy.right: 3,
    TurnPolicy.minority: 4,
    TurnPolicy.majority: 5,
}

# snake_case field name -> camelCase wire name
WIRE_NAMES = {
    "threshold": "threshold",
    "turd_size": "turdSize",
    "alpha_max": "alphaMax",
    "opt_curve": "optCurve",
    "opt_tolerance": "optTolerance",
    "turn_policy": "turnPolicy",
    "black_on_white": "blackOnWhite",
}


@dataclass(frozen=True)
class ConversionOptions:
    """Tunables passed through to the tracer."""
    threshold: Optional[int] = None
    turd_size: Optional[int] = None
    alpha_max: Optional[float] = None
    opt_curve: Optional[bool] = None
    opt_tolerance: Optional[float] = None
    turn_policy: Optional[TurnPolicy] = None
    black_on_white: Optional[bool] = None

    def __post_init__(self):
        if self.threshold is not None and not 0 <= self.threshold <= 255:
            raise ValueError(f"Bad threshold value: {self.threshold} (expected 0-255)")
        if self.turn_policy is not None and not isinstance(self.turn_policy, TurnPolicy):
            object.__setattr__(self, "turn_policy", TurnPolicy(self.turn_policy))

    def override(self, **changes: Any) -> "ConversionOptions":
        """Return a copy with every non-None keyword replacing the current value."""
        changes = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **changes)

    def merged_with(self, other: "ConversionOptions") -> "ConversionOptions":
        """Fields set on ``other`` win over fields set on ``self``."""
        return self.override(**{f.name: getattr(other, f.name) for f in fields(other)})

    def merged_with_defaults(self) -> "ConversionOptions":
        return DEFAULT_OPTIONS.merged_with(self)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> Dict[str, Any]:
        """camelCase mapping of the fields that are set."""
        payload = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, TurnPolicy):
                value = value.value
            payload[WIRE_NAMES[f.name]] = value
        return payload

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConversionOptions":
        """Build options from a mapping keyed by either snake_case or camelCase names."""
        values = {}
        for name, wire in WIRE_NAMES.items():
            if data.get(name) is not None:
                values[name] = data[name]
            elif data.get(wire) is not None:
                values[name] = data[wire]
        return cls(**values)


DEFAULT_OPTIONS = ConversionOptions(
    threshold=128,
    turd_size=2,
    alpha_max=1.0,
    opt_curve=True,
    opt_tolerance=0.2,
    turn_policy=TurnPolicy.minority,
    black_on_white=True,
)

PRESETS: Dict[str, ConversionOptions] = {
    # Flat artwork with crisp edges
    "logo": ConversionOptions(
        threshold=128,
        turd_size=2,
        opt_curve=True,
        opt_tolerance=0.2,
        turn_policy=TurnPolicy.minority,
    ),
    "photo": ConversionOptions(
        threshold=120,
        turd_size=4,
        opt_curve=True,
        opt_tolerance=0.3,
        turn_policy=TurnPolicy.majority,
    ),
    # Line art keeps small details
    "drawing": ConversionOptions(
        threshold=140,
        turd_size=1,
        opt_curve=True,
        opt_tolerance=0.1,
        turn_policy=TurnPolicy.minority,
    ),
    "text": ConversionOptions(
        threshold=128,
        turd_size=1,
        opt_curve=False,
        opt_tolerance=0.1,
        turn_policy=TurnPolicy.black,
    ),
}


class Preset(str, Enum):
    """Named option bundles."""
    logo = "logo"
    photo = "photo"
    drawing = "drawing"
    text = "text"


def get_preset_options(name: Optional[str], strict: bool = False) -> ConversionOptions:
    """
    Look up the options for a named preset.

    Args:
        name: Preset name ('logo', 'photo', 'drawing', 'text')
        strict: Raise ``UnknownPresetError`` for unknown names instead of
            returning empty options

    Returns:
        The preset's ``ConversionOptions``; empty options for an unknown name
    """
    if name is None:
        return ConversionOptions()
    if isinstance(name, Preset):
        name = name.value
    preset = PRESETS.get(name)
    if preset is not None:
        return preset
    if strict:
        raise UnknownPresetError(name, PRESETS)
    logger.warning("Unknown preset %r, falling back to default options", name)
    return ConversionOptions()


def list_presets() -> Dict[str, Dict[str, Any]]:
    """All presets in their camelCase wire form."""
    return {name: options.to_dict() for name, options in PRESETS.items()}
