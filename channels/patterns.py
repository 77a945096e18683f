from typing import Iterable, List

from core import pattern_matcher
from core.constants import MAX_CONFIDENCE
from core.normalizer import normalize
from models.detection import ChannelResult
from models.signature import PatternDescriptor, RawPattern


def check_items(raw: RawPattern, items: Iterable[str], channel: str) -> ChannelResult:
    """Run the normalized patterns over every evidence item and sum the hits."""
    patterns = normalize(raw, channel)
    if not patterns:
        return ChannelResult()

    matches: List[PatternDescriptor] = []
    total = 0.0
    for item in items:
        result = pattern_matcher.match_patterns(item, patterns)
        if result.matched:
            matches.extend(result.matches)
            total += result.confidence

    return ChannelResult(
        matched=bool(matches),
        confidence=min(total, MAX_CONFIDENCE),
        matches=matches,
    )
