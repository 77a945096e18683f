"""Evaluate a single signature pattern against a single evidence string."""
import base64
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List
from urllib.parse import quote

import regex as regex_lib

from core.constants import FUZZY_SIMILARITY_THRESHOLD, MAX_CONFIDENCE, MAX_SCAN_LENGTH, REGEX_TIMEOUT_SECONDS
from models.signature import PatternDescriptor, PatternType

logger = logging.getLogger(__name__)

# Characters ignored by fuzzy matching (version digits, separators, brackets)
FUZZY_NOISE = re.compile(r"[0-9_\-\[\]]")

# Same safe set as JavaScript's encodeURIComponent
URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class MatchResult:
    matched: bool = False
    confidence: float = 0.0
    matches: List[PatternDescriptor] = field(default_factory=list)


NO_MATCH = MatchResult()


def match(value: str, pattern: PatternDescriptor) -> MatchResult:
    """Match one pattern. Never raises; a miss returns confidence 0."""
    if not value or not pattern.pattern:
        return NO_MATCH
    if len(value) > MAX_SCAN_LENGTH:
        logger.debug(f"Truncating evidence for scanning to {MAX_SCAN_LENGTH} chars (original {len(value)})")
        value = value[:MAX_SCAN_LENGTH]

    if pattern.type == PatternType.REGEX:
        matched_values = _match_regex(value, pattern.pattern)
    elif pattern.type == PatternType.FUZZY:
        matched_values = [value] if _match_fuzzy(value, pattern.pattern) else []
    elif pattern.type == PatternType.ENCODED:
        matched_values = _match_encoded(value, pattern.pattern)
    else:
        matched_values = _match_exact(value, pattern.pattern)

    if not matched_values:
        return NO_MATCH

    return MatchResult(
        matched=True,
        confidence=pattern.weighted_confidence,
        matches=[pattern.with_matches(matched_values)],
    )


def match_patterns(value: str, patterns: Iterable[PatternDescriptor]) -> MatchResult:
    """Match every pattern independently; confidences add up, capped at 100."""
    matches: List[PatternDescriptor] = []
    total = 0.0
    for pattern in patterns:
        result = match(value, pattern)
        if result.matched:
            matches.extend(result.matches)
            total += result.confidence

    if not matches:
        return NO_MATCH
    return MatchResult(matched=True, confidence=min(total, MAX_CONFIDENCE), matches=matches)


def _match_exact(value: str, pattern: str) -> List[str]:
    return [m.group(0) for m in re.finditer(re.escape(pattern), value, re.IGNORECASE)]


def _match_regex(value: str, pattern: str) -> List[str]:
    try:
        compiled = regex_lib.compile(pattern, regex_lib.IGNORECASE)
    except regex_lib.error as e:
        logger.debug(f"Invalid regex {pattern!r} ({e}), falling back to substring match")
        return _match_exact(value, pattern)
    try:
        # finditer steps past zero-length matches on its own; only keep real hits
        return [m.group(0) for m in compiled.finditer(value, timeout=REGEX_TIMEOUT_SECONDS) if m.group(0)]
    except TimeoutError:
        logger.warning(f"Regex timeout for pattern {pattern[:50]!r} on {len(value)} chars, treating as no match")
        return []


def _match_fuzzy(value: str, pattern: str) -> bool:
    clean_value = FUZZY_NOISE.sub("", value.lower())
    clean_pattern = FUZZY_NOISE.sub("", pattern.lower())
    if not clean_pattern:
        return False
    if clean_pattern in clean_value:
        return True
    return string_similarity(clean_value, clean_pattern) > FUZZY_SIMILARITY_THRESHOLD


def _match_encoded(value: str, pattern: str) -> List[str]:
    found = []
    for encoded in encoded_forms(pattern):
        if encoded and encoded in value:
            found.append(encoded)
    return found


def encoded_forms(pattern: str) -> List[str]:
    """Base64, hex-byte and percent-encoded renderings of a pattern."""
    forms = []
    try:
        forms.append(base64.b64encode(pattern.encode("latin-1")).decode("ascii"))
    except UnicodeEncodeError:
        # only latin-1 text has a direct base64 form
        pass
    forms.append("".join(format(ord(c), "x") for c in pattern))
    forms.append(quote(pattern, safe=URI_COMPONENT_SAFE))
    return forms


def string_similarity(a: str, b: str) -> float:
    """Normalized Levenshtein similarity in [0, 1]."""
    if not a:
        return 1.0 if not b else 0.0
    if not b:
        return 0.0

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current

    max_len = max(len(a), len(b))
    return (max_len - previous[-1]) / max_len
