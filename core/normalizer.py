"""Turn raw signature values into uniform PatternDescriptor lists."""
import re
from typing import Any, List, Mapping, Optional

from core.constants import (
    DEFAULT_CONFIDENCE,
    DEFAULT_PRIORITY,
    DETECTION_TYPE_CONFIDENCE,
    DETECTION_TYPE_PRIORITY,
)
from models.signature import (
    Explicit,
    Literal,
    PatternDescriptor,
    PatternPriority,
    PatternType,
    Patterns,
    RawPattern,
)

REGEX_METACHARACTERS = re.compile(r"[.*+?^${}()|\[\]\\]")
FUZZY_SHAPE = re.compile(r"[0-9]{2,}|[A-Z]{2,}[a-z]{2,}[A-Z]{2,}")


def default_confidence(channel: str) -> float:
    return float(DETECTION_TYPE_CONFIDENCE.get(channel, DEFAULT_CONFIDENCE))


def default_priority(channel: str) -> PatternPriority:
    return DETECTION_TYPE_PRIORITY.get(channel, DEFAULT_PRIORITY)


def infer_type(pattern: str) -> PatternType:
    if REGEX_METACHARACTERS.search(pattern):
        return PatternType.REGEX
    if FUZZY_SHAPE.search(pattern):
        return PatternType.FUZZY
    return PatternType.EXACT


def descriptor_from_string(pattern: str, channel: str) -> PatternDescriptor:
    return PatternDescriptor(
        pattern=pattern,
        priority=default_priority(channel),
        type=infer_type(pattern),
        confidence=default_confidence(channel),
        location=channel,
    )


def descriptor_from_mapping(data: Mapping[str, Any], channel: str, default_pattern: Optional[str] = None) -> PatternDescriptor:
    """Build a descriptor from an explicit mapping, filling gaps from the channel defaults.

    Raises ``ValueError`` for unknown priority/type names or a missing pattern;
    this runs once, when signature files are loaded.
    """
    pattern = data.get("pattern", default_pattern)
    if not isinstance(pattern, str) or not pattern:
        raise ValueError(f"explicit pattern needs a non-empty 'pattern' string: {dict(data)!r}")

    priority = data.get("priority")
    pattern_type = data.get("type")
    confidence = data.get("confidence")
    return PatternDescriptor(
        pattern=pattern,
        priority=PatternPriority(str(priority).upper()) if priority else default_priority(channel),
        type=PatternType(str(pattern_type).lower()) if pattern_type else infer_type(pattern),
        confidence=float(confidence) if confidence is not None else default_confidence(channel),
        location=data.get("location") or channel,
    )


def parse_raw_pattern(value: Any, channel: str) -> RawPattern:
    """Resolve a raw signature value into the closed Literal/Patterns/Explicit form."""
    if isinstance(value, (Literal, Patterns, Explicit)):
        return value
    if isinstance(value, PatternDescriptor):
        return Explicit(value)
    if isinstance(value, str):
        return Literal(value)
    if isinstance(value, Mapping):
        return Explicit(descriptor_from_mapping(value, channel))
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            parsed = parse_raw_pattern(item, channel)
            if isinstance(parsed, Patterns):
                items.extend(parsed.items)
            else:
                items.append(parsed)
        return Patterns(tuple(items))
    raise ValueError(f"unsupported {channel} pattern: {value!r}")


def normalize(raw: Any, channel: str) -> List[PatternDescriptor]:
    """Return the canonical descriptor list for a raw pattern on ``channel``.

    Bare strings get the channel's default confidence/priority and an inferred
    type; explicit descriptors pass through unchanged.
    """
    if raw is None:
        return []
    parsed = parse_raw_pattern(raw, channel)
    if isinstance(parsed, Literal):
        return [descriptor_from_string(parsed.value, channel)]
    if isinstance(parsed, Explicit):
        return [parsed.descriptor]
    return [d for item in parsed.items for d in normalize(item, channel)]
