from dataclasses import dataclass, field
from enum import Enum
from typing import List

from models.signature import PatternDescriptor


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NONE = "NONE"


class DetectionType(str, Enum):
    DETECTION = "detection" # Cleared the mode threshold on its own evidence
    TRANSITIVE = "transitive" # Pulled in through implies/requires


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of one evidence channel for one technology."""
    matched: bool = False
    confidence: float = 0.0
    matches: List[PatternDescriptor] = field(default_factory=list)


@dataclass(frozen=True)
class DetectedTechnology:
    """Represents a detected technology."""
    name: str
    confidence: float
    confidence_level: ConfidenceLevel
    detected_using: List[str] = field(default_factory=list)
    matches: List[PatternDescriptor] = field(default_factory=list)
    detection_type: DetectionType = DetectionType.DETECTION
