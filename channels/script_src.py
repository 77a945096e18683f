from core.channel_registry import ChannelRegistry
from channels.patterns import check_items
from models.detection import ChannelResult
from models.evidence import PageEvidence
from models.signature import Signature


@ChannelRegistry.register("scriptSrc", position=1)
class ScriptSrcChannel:
    """Match URL patterns against script and other asset URLs."""

    def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
        if signature.script_src is None or not evidence.asset_urls:
            return ChannelResult()
        return check_items(signature.script_src, evidence.asset_urls, "scriptSrc")
