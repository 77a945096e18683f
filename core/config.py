"""Detection configuration and its YAML loader."""
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet

import yaml

from core.constants import DetectionMode

logger = logging.getLogger(__name__)

# Default timeout configuration (in seconds)
DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_MAX_REDIRECTS = 10


@dataclass(frozen=True)
class DetectionConfig:
    mode: DetectionMode = DetectionMode.LOOSE
    blocking_detection_enabled: bool = True
    include_raw_data: bool = False
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    exclude_channels: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not isinstance(self.mode, DetectionMode):
            object.__setattr__(self, "mode", parse_mode(self.mode))
        if not isinstance(self.exclude_channels, frozenset):
            object.__setattr__(self, "exclude_channels", frozenset(self.exclude_channels or ()))

    def override(self, **changes: Any) -> "DetectionConfig":
        """Return a copy with the non-None ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def parse_mode(value: Any) -> DetectionMode:
    if isinstance(value, DetectionMode):
        return value
    try:
        return DetectionMode(str(value).upper())
    except ValueError:
        valid = ", ".join(m.value for m in DetectionMode)
        raise ValueError(f"Unknown detection mode {value!r} (expected one of {valid})") from None


def load_config(path: str) -> DetectionConfig:
    """Load a DetectionConfig from a YAML file; missing keys keep their defaults."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(DetectionConfig)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = {k: v for k, v in data.items() if k in known}
    config = DetectionConfig(**values)
    logger.info(f"Loaded config from {path} (mode={config.mode.value})")
    return config
