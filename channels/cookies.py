from core import pattern_matcher
from core.channel_registry import ChannelRegistry
from core.constants import COOKIE_MATCH_CONFIDENCE, MAX_CONFIDENCE
from models.detection import ChannelResult
from models.evidence import PageEvidence
from models.signature import PatternDescriptor, PatternPriority, PatternType, Signature


@ChannelRegistry.register("cookies", position=3)
class CookiesChannel:
    """Match declared cookie names as substrings of live cookie names.

    A non-empty declared value must also match the live cookie value as a regex.
    """

    def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
        if not signature.cookies or not evidence.cookies:
            return ChannelResult()

        matches = []
        total = 0.0
        for cookie_name, cookie_value in evidence.cookies.items():
            for declared_name, declared_pattern in signature.cookies.items():
                if not declared_name or declared_name not in cookie_name:
                    continue
                if declared_pattern and not self._value_matches(cookie_value or "", declared_pattern):
                    continue

                pattern = PatternDescriptor(
                    pattern=declared_name,
                    priority=PatternPriority.HIGH,
                    type=PatternType.EXACT,
                    confidence=COOKIE_MATCH_CONFIDENCE,
                    location="cookies",
                    matched_values=(cookie_name,),
                )
                matches.append(pattern)
                total += pattern.weighted_confidence

        return ChannelResult(
            matched=bool(matches),
            confidence=min(total, MAX_CONFIDENCE),
            matches=matches,
        )

    def _value_matches(self, value: str, pattern: str) -> bool:
        probe = PatternDescriptor(pattern=pattern, type=PatternType.REGEX, location="cookies")
        return pattern_matcher.match(value, probe).matched
