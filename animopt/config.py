"""Default optimizer settings, read once from defaults.yaml."""

from pathlib import Path

import yaml

_CONFIG_PATH = Path(__file__).resolve().parent / "defaults.yaml"

with open(_CONFIG_PATH) as f:
    _cfg = yaml.safe_load(f)

_optimizer = _cfg["optimizer"]
_constant = _cfg["constant"]

DEFAULT_TOLERANCE = float(_optimizer["tolerance"])
DEFAULT_DISTANCE = float(_optimizer["distance"])
DEFAULT_COMBINATION = str(_optimizer["combination"]).lower()

# Own-tolerance ladder, as increasing fractions of a joint's target error
TOLERANCE_LADDER = tuple(sorted(float(r) for r in _optimizer["ladder"]))

CONSTANT_TRANSLATION_TOLERANCE = float(_constant["translation_tolerance"])
CONSTANT_ROTATION_TOLERANCE = float(_constant["rotation_tolerance"])
CONSTANT_SCALE_TOLERANCE = float(_constant["scale_tolerance"])
