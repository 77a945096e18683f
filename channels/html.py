from core.channel_registry import ChannelRegistry
from channels.patterns import check_items
from models.detection import ChannelResult
from models.evidence import PageEvidence
from models.signature import Signature


@ChannelRegistry.register("html", position=4)
class HtmlChannel:
    def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
        if signature.html is None or not evidence.html:
            return ChannelResult()
        return check_items(signature.html, [evidence.html], "html")
