import logging

from soupsieve import SelectorSyntaxError

from core.channel_registry import ChannelRegistry
from core.constants import DOM_MATCH_CONFIDENCE, MAX_CONFIDENCE
from models.detection import ChannelResult
from models.evidence import PageEvidence
from models.signature import PatternDescriptor, PatternPriority, PatternType, Signature

logger = logging.getLogger(__name__)


def select_exists(dom, selector: str) -> bool:
    """True if ``selector`` matches at least one node; invalid selectors never match."""
    if dom is None:
        return False
    try:
        return dom.select_one(selector) is not None
    except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
        logger.debug(f"Ignoring invalid selector {selector!r}: {e}")
        return False


@ChannelRegistry.register("dom", position=5)
class DomChannel:
    def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
        if not signature.dom or evidence.dom is None:
            return ChannelResult()

        matches = []
        total = 0.0
        for selector in signature.dom:
            if not select_exists(evidence.dom, selector):
                continue
            pattern = PatternDescriptor(
                pattern=selector,
                priority=PatternPriority.HIGH,
                type=PatternType.EXACT,
                confidence=DOM_MATCH_CONFIDENCE,
                location="dom",
            )
            matches.append(pattern)
            total += pattern.weighted_confidence

        return ChannelResult(
            matched=bool(matches),
            confidence=min(total, MAX_CONFIDENCE),
            matches=matches,
        )
