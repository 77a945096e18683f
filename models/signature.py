from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class PatternPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def weight(self) -> float:
        return PRIORITY_WEIGHTS[self]


PRIORITY_WEIGHTS = {
    PatternPriority.HIGH: 1.0,
    PatternPriority.MEDIUM: 0.7,
    PatternPriority.LOW: 0.4,
}


class PatternType(str, Enum):
    EXACT = "exact"
    REGEX = "regex"
    FUZZY = "fuzzy"
    ENCODED = "encoded"


@dataclass(frozen=True)
class PatternDescriptor:
    """A single normalized rule unit evaluated against one evidence string."""
    pattern: str
    priority: PatternPriority = PatternPriority.MEDIUM
    type: PatternType = PatternType.EXACT
    confidence: float = 50.0 # Base confidence (0-100) before the priority weight
    location: str = "" # Channel the pattern came from
    matched_values: Tuple[str, ...] = ()

    @property
    def weighted_confidence(self) -> float:
        return self.confidence * self.priority.weight

    def with_matches(self, values) -> "PatternDescriptor":
        return replace(self, matched_values=tuple(values))


@dataclass(frozen=True)
class Literal:
    """A terse signature string; type and confidence are inferred."""
    value: str


@dataclass(frozen=True)
class Explicit:
    """A fully specified descriptor supplied by the signature author."""
    descriptor: PatternDescriptor


@dataclass(frozen=True)
class Patterns:
    """A list of literals and/or explicit descriptors."""
    items: Tuple[Union[Literal, Explicit], ...]


RawPattern = Union[Literal, Patterns, Explicit]


@dataclass(frozen=True)
class Signature:
    """A technology's detection rule across evidence channels."""
    name: str
    js: Optional[RawPattern] = None
    script_src: Optional[RawPattern] = None
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    html: Optional[RawPattern] = None
    dom: Tuple[str, ...] = ()
    implies: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()

    @property
    def transitive_targets(self) -> Tuple[str, ...]:
        return self.implies + self.requires
