import logging
from typing import Dict, Optional

import httpx

from core.channel_registry import ChannelRegistry
from core.config import DetectionConfig

# Import all channels to trigger @ChannelRegistry.register decorators
import channels.js
import channels.script_src
import channels.headers
import channels.cookies
import channels.html
import channels.dom

from core.blocking import analyze_page, assess_blocking
from core.detector import TechnologyDetector
from core.result_aggregator import aggregate
from fetch.http_client import fetch_url
from fetch.page_parser import parse_response
from models.evidence import PageEvidence
from models.result import AnalysisResult
from signatures.loader import SignatureLibrary, load_signatures


class DetectionEngine:
    """An immutable pairing of a signature library and a detection config.

    Engines hold no per-analysis state, so one engine can serve concurrent
    analyses. To swap the signature library, build a new engine.
    """

    def __init__(self, signatures: Optional[SignatureLibrary] = None, config: Optional[DetectionConfig] = None):
        self.logger = logging.getLogger(__name__)
        self.config = config or DetectionConfig()
        self.signatures = signatures if signatures is not None else load_signatures()
        self.logger.info(f"Using {len(self.signatures)} technology signatures")

        unknown = set(self.config.exclude_channels) - set(ChannelRegistry.get_all_names())
        if unknown:
            raise ValueError(f"Unknown channel names: {', '.join(sorted(unknown))}")

        self.channels: Dict[str, object] = ChannelRegistry.instantiate_all(exclude=set(self.config.exclude_channels))
        self.detector = TechnologyDetector(self.signatures, self.channels, self.config.mode)
        self.logger.info(f"Initialized {len(self.channels)} channels (mode: {self.config.mode.value})")

    async def scan_url(self, url: str, headers: Optional[Dict[str, str]] = None) -> PageEvidence:
        """Fetch and parse ``url``; a failed fetch yields the failed sentinel."""
        self.logger.debug(f"Starting scan_url for {url}")
        try:
            page = await fetch_url(
                url,
                timeout=self.config.fetch_timeout,
                headers=headers,
                max_redirects=self.config.max_redirects,
            )
        except httpx.HTTPError as e:
            self.logger.error(f"Failed to fetch {url}: {e}")
            return PageEvidence.failed(url)
        return parse_response(url, page)

    def analyze(self, evidence: PageEvidence) -> AnalysisResult:
        """Run detection, blocking analysis and aggregation over one page."""
        if evidence.fetch_failed:
            technologies = []
        else:
            technologies = self.detector.detect(evidence)
        self.logger.info(f"Detected {len(technologies)} technologies on {evidence.url}")

        page_analysis = analyze_page(evidence)
        blocking = None
        if self.config.blocking_detection_enabled:
            blocking = assess_blocking(evidence, technologies, page_analysis)
            self.logger.info(f"Blocking score for {evidence.url}: {blocking.score} (likely blocked: {blocking.likely_blocked})")

        return aggregate(
            evidence,
            technologies,
            page_analysis,
            blocking=blocking,
            include_raw_data=self.config.include_raw_data,
        )
