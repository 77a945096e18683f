import httpx
import pytest

from core.config import DetectionConfig
from core.constants import DetectionMode
from core.engine import DetectionEngine
from core.result_aggregator import calculate_stats
from fetch.http_client import fetch_url
from fetch.page_parser import parse_html
from models.blocking import BlockingAssessment
from models.detection import ConfidenceLevel, DetectedTechnology, DetectionType
from models.evidence import PageEvidence
from models.signature import Signature


WORDPRESS_PAGE = """<html><head>
<link rel="stylesheet" href="/wp-content/themes/twenty/style.css">
<script src="/wp-includes/js/jquery/jquery.min.js"></script>
</head><body><p>Hello world</p></body></html>"""


@pytest.fixture(scope="module")
def bundled_engine():
    return DetectionEngine(config=DetectionConfig(blocking_detection_enabled=False))


def test_engine_detects_bundled_signatures(bundled_engine):
    evidence = parse_html("https://blog.example.com/", WORDPRESS_PAGE)
    result = bundled_engine.analyze(evidence)

    detected = {t.name: t for t in result.technologies}
    assert result.technologies[0].name == "WordPress"
    assert detected["WordPress"].confidence == 100.0
    assert detected["WordPress"].detection_type == DetectionType.DETECTION
    assert detected["WordPress"].detected_using == ["scriptSrc", "html", "dom"]
    assert detected["PHP"].detection_type == DetectionType.TRANSITIVE
    assert detected["MySQL"].detection_type == DetectionType.TRANSITIVE
    assert detected["jQuery"].detection_type == DetectionType.DETECTION
    assert result.blocking is None
    assert result.raw_data is None
    assert result.stats.total == len(result.technologies)
    assert result.stats.top_detection == result.technologies[0]


def test_engine_blocking_and_raw_data():
    signatures = {"Cloudflare": Signature(name="Cloudflare", headers={"Server": "cloudflare"}, cookies={"__cf_bm": ""})}
    engine = DetectionEngine(signatures, DetectionConfig(include_raw_data=True))
    evidence = parse_html(
        "https://example.com/",
        "<html><head><title>Just a moment...</title></head><body><div id='challenge-form'></div></body></html>",
        headers={"Server": "cloudflare"},
        cookies={"__cf_bm": "token"},
        status_code=503,
    )

    result = engine.analyze(evidence)

    assert [t.name for t in result.technologies] == ["Cloudflare"]
    assert result.blocking.likely_blocked
    assert result.blocking.challenge_type == "javascript"
    assert result.blocking.detected_bot_protection_techs == ["Cloudflare"]
    assert result.page_analysis.has_challenge_elements
    assert result.raw_data["headers"] == {"server": "cloudflare"}
    assert result.raw_data["cookies"] == {"__cf_bm": "token"}
    assert result.status_code == 503


def test_engine_failed_evidence():
    engine = DetectionEngine({}, DetectionConfig())
    result = engine.analyze(PageEvidence.failed("https://down.example.com/"))
    assert result.technologies == []
    assert result.blocking == BlockingAssessment()
    assert result.stats.total == 0
    assert result.stats.top_detection is None


def test_engine_mode_changes_detections():
    signatures = {"Cloudflare": Signature(name="Cloudflare", headers={"Server": "cloudflare"})}
    evidence = parse_html("https://example.com/", "<html></html>", headers={"Server": "cloudflare"})

    loose = DetectionEngine(signatures, DetectionConfig(mode=DetectionMode.LOOSE)).analyze(evidence)
    strict = DetectionEngine(signatures, DetectionConfig(mode=DetectionMode.STRICT)).analyze(evidence)

    assert [t.name for t in loose.technologies] == ["Cloudflare"]
    assert strict.technologies == []


def test_engine_rejects_unknown_channels():
    with pytest.raises(ValueError):
        DetectionEngine({}, DetectionConfig(exclude_channels={"meta"}))


def test_engine_excludes_channels():
    engine = DetectionEngine({}, DetectionConfig(exclude_channels={"dom", "html"}))
    assert list(engine.channels) == ["js", "scriptSrc", "headers", "cookies"]


def test_calculate_stats():
    technologies = [
        DetectedTechnology(name="A", confidence=100.0, confidence_level=ConfidenceLevel.HIGH),
        DetectedTechnology(name="B", confidence=75.0, confidence_level=ConfidenceLevel.MEDIUM),
        DetectedTechnology(name="C", confidence=42.0, confidence_level=ConfidenceLevel.LOW),
        DetectedTechnology(
            name="D", confidence=0.0, confidence_level=ConfidenceLevel.NONE, detection_type=DetectionType.TRANSITIVE
        ),
    ]
    stats = calculate_stats(technologies)
    assert stats.total == 4
    assert stats.by_confidence == {"HIGH": 1, "MEDIUM": 1, "LOW": 1}
    assert stats.average_confidence == 54.3
    assert stats.top_detection.name == "A"


def test_calculate_stats_empty():
    stats = calculate_stats([])
    assert stats.total == 0
    assert stats.average_confidence == 0.0
    assert stats.top_detection is None


@pytest.mark.asyncio
async def test_scan_url(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Server": "cloudflare"}, text="<html><body><p>ok</p></body></html>")

    async def fake_fetch(url, **kwargs):
        return await fetch_url(url, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr("core.engine.fetch_url", fake_fetch)
    engine = DetectionEngine({"Cloudflare": Signature(name="Cloudflare", headers={"Server": "cloudflare"})})

    evidence = await engine.scan_url("https://example.com/")

    assert not evidence.fetch_failed
    assert evidence.status_code == 200
    assert [t.name for t in engine.analyze(evidence).technologies] == ["Cloudflare"]


@pytest.mark.asyncio
async def test_scan_url_failure_returns_sentinel(monkeypatch):
    async def failing_fetch(url, **kwargs):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("core.engine.fetch_url", failing_fetch)
    engine = DetectionEngine({})

    evidence = await engine.scan_url("https://down.example.com/")

    assert evidence.fetch_failed
    assert evidence.url == "https://down.example.com/"
