from core.channel_registry import ChannelRegistry
from channels.patterns import check_items
from models.detection import ChannelResult
from models.evidence import PageEvidence
from models.signature import Signature


@ChannelRegistry.register("js", position=0)
class JsChannel:
    """Match signature code fragments against inline script bodies."""

    def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
        if signature.js is None or not evidence.js:
            return ChannelResult()
        return check_items(signature.js, evidence.js, "js")
