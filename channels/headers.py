import logging

from core import pattern_matcher
from core.channel_registry import ChannelRegistry
from core.constants import HEADER_MATCH_CONFIDENCE, MAX_CONFIDENCE
from models.detection import ChannelResult
from models.evidence import PageEvidence
from models.signature import PatternDescriptor, PatternPriority, PatternType, Signature

logger = logging.getLogger(__name__)


@ChannelRegistry.register("headers", position=2)
class HeadersChannel:
    """Match declared header values as regular expressions.

    An empty declared pattern only requires the header to be present.
    """

    def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
        if not signature.headers:
            return ChannelResult()

        matches = []
        total = 0.0
        for header_name, header_pattern in signature.headers.items():
            name = header_name.strip().rstrip(":").strip().lower()
            header_value = evidence.headers.get(name)
            if not header_value:
                continue

            pattern = PatternDescriptor(
                pattern=header_pattern or "",
                priority=PatternPriority.HIGH,
                type=PatternType.REGEX,
                confidence=HEADER_MATCH_CONFIDENCE,
                location="headers",
            )
            if not header_pattern:
                logger.debug(f"HeadersChannel matched presence of {name} for {signature.name}")
                matches.append(pattern.with_matches([header_value]))
                total += pattern.weighted_confidence
                continue

            result = pattern_matcher.match(header_value, pattern)
            if result.matched:
                logger.debug(f"HeadersChannel matched {signature.name} on header {name}")
                matches.extend(result.matches)
                total += result.confidence

        return ChannelResult(
            matched=bool(matches),
            confidence=min(total, MAX_CONFIDENCE),
            matches=matches,
        )
