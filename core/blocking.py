"""Heuristic scoring of anti-bot block and challenge pages.

The analyzer is a stateless, additive pass over the page evidence and the
technologies already detected on it. Every signal adds a fixed number of
points (see ``BLOCKING_WEIGHTS``); the total is clamped to 0-100 and a page
scoring at least ``BLOCKING_THRESHOLD`` is reported as likely blocked.
"""
import logging
from typing import List, Optional, Sequence

from channels.dom import select_exists
from core.constants import (
    ACCESS_DENIED_TITLE_PATTERNS,
    BLOCKING_THRESHOLD,
    BLOCKING_WEIGHTS,
    CAPTCHA_SELECTOR,
    CAPTCHA_SOURCE_PATTERN,
    CAPTCHA_TECHNOLOGIES,
    CHALLENGE_SELECTOR,
    CHALLENGE_SOURCE_PATTERN,
    CHALLENGE_TECHNOLOGIES,
    FEW_ELEMENTS,
    MINIMAL_TEXT_LENGTH,
    SLOW_RESPONSE_MS,
    SUSPICIOUS_PHRASE_PATTERNS,
    SUSPICIOUS_REDIRECT_COUNT,
    SUSPICIOUS_SELECTORS,
    SUSPICIOUS_STATUS_CODES,
    SUSPICIOUS_TITLE_PATTERNS,
    VERY_FEW_ELEMENTS,
)
from models.blocking import BlockingAssessment, BlockingIndicators, PageAnalysis, SuspiciousElement
from models.detection import DetectedTechnology
from models.evidence import PageEvidence

logger = logging.getLogger(__name__)


def dom_complexity(element_count: int) -> str:
    if element_count < 100:
        return "LOW"
    if element_count < 1000:
        return "MEDIUM"
    return "HIGH"


def find_suspicious_elements(dom) -> List[SuspiciousElement]:
    if dom is None:
        return []
    elements = []
    for el in dom.select(", ".join(SUSPICIOUS_SELECTORS)):
        classes = el.get("class") or []
        if isinstance(classes, str):
            classes = [classes]
        elements.append(
            SuspiciousElement(tag=el.name.upper(), id=el.get("id") or "", class_name=" ".join(classes))
        )
    return elements


def analyze_page(evidence: PageEvidence) -> PageAnalysis:
    """Collect page-level facts, including captcha and challenge markup."""
    source = evidence.html or ""
    has_captcha = select_exists(evidence.dom, CAPTCHA_SELECTOR) or bool(CAPTCHA_SOURCE_PATTERN.search(source))
    has_challenge = select_exists(evidence.dom, CHALLENGE_SELECTOR) or bool(CHALLENGE_SOURCE_PATTERN.search(source))
    meta = evidence.meta or {}

    return PageAnalysis(
        body_dom_element_count=evidence.body_dom_element_count,
        dom_complexity=dom_complexity(evidence.body_dom_element_count),
        content_type=evidence.content_type,
        title=evidence.title,
        description=evidence.description,
        language=meta.get("language") or meta.get("lang") or "unknown",
        viewport=meta.get("viewport") or "not set",
        charset=meta.get("charset") or "unknown",
        has_forms=evidence.form_count > 0,
        has_javascript=evidence.script_count > 0,
        external_resources=len(evidence.asset_urls),
        has_captcha_elements=has_captcha,
        has_challenge_elements=has_challenge,
        suspicious_elements=find_suspicious_elements(evidence.dom),
    )


def _matching_technologies(technologies: Sequence[DetectedTechnology], keywords: Sequence[str]) -> List[str]:
    return [
        tech.name for tech in technologies
        if any(keyword in tech.name.lower() for keyword in keywords)
    ]


def assess_blocking(
    evidence: PageEvidence,
    technologies: Sequence[DetectedTechnology],
    page_analysis: Optional[PageAnalysis] = None,
) -> BlockingAssessment:
    """Score how likely ``evidence`` is a block or challenge page."""
    if evidence.fetch_failed:
        return BlockingAssessment()

    page = page_analysis or analyze_page(evidence)
    flags = {}
    score = 0

    if evidence.status_code in SUSPICIOUS_STATUS_CODES:
        flags["status_code_suspicious"] = True
        score += BLOCKING_WEIGHTS["status_code"]

    if evidence.body_dom_element_count < VERY_FEW_ELEMENTS:
        flags["minimal_dom_elements"] = True
        score += BLOCKING_WEIGHTS["very_few_elements"]
    elif evidence.body_dom_element_count < FEW_ELEMENTS:
        flags["minimal_dom_elements"] = True
        score += BLOCKING_WEIGHTS["few_elements"]

    if evidence.text_content_length < MINIMAL_TEXT_LENGTH:
        flags["minimal_content"] = True
        score += BLOCKING_WEIGHTS["minimal_content"]

    title = evidence.title or ""
    access_denied = any(p.search(title) for p in ACCESS_DENIED_TITLE_PATTERNS)
    if access_denied or any(p.search(title) for p in SUSPICIOUS_TITLE_PATTERNS):
        flags["suspicious_title"] = True
        flags["access_denied_text"] = access_denied
        score += BLOCKING_WEIGHTS["suspicious_title"]

    if page.has_captcha_elements or page.has_challenge_elements:
        flags["captcha_detected"] = page.has_captcha_elements
        flags["challenge_detected"] = page.has_challenge_elements
        score += BLOCKING_WEIGHTS["challenge_markup"]

    if page.suspicious_elements:
        flags["suspicious_elements"] = True
        score += BLOCKING_WEIGHTS["suspicious_elements"]

    # Phrases only count on pages that are already thin, so long legitimate
    # pages that merely mention e.g. "cloudflare" are not penalized
    minimal = flags.get("minimal_dom_elements", False) or flags.get("minimal_content", False)
    urls = (evidence.final_url or "") + (evidence.url or "")
    source = evidence.html or ""
    phrases: List[str] = []
    phrase_categories = set()
    for pattern, category in SUSPICIOUS_PHRASE_PATTERNS:
        found = pattern.search(source) or pattern.search(urls)
        if not found:
            continue
        phrases.append(found.group(0))
        if category:
            phrase_categories.add(category)
        if minimal:
            score += BLOCKING_WEIGHTS["suspicious_phrase"]

    if evidence.redirect_count >= SUSPICIOUS_REDIRECT_COUNT:
        flags["suspicious_redirects"] = True
        score += BLOCKING_WEIGHTS["redirects"]

    if evidence.response_time > SLOW_RESPONSE_MS:
        flags["unusual_response_time"] = True
        score += BLOCKING_WEIGHTS["response_time"]

    captcha_techs = _matching_technologies(technologies, CAPTCHA_TECHNOLOGIES)
    challenge_techs = _matching_technologies(technologies, CHALLENGE_TECHNOLOGIES)
    if captcha_techs or challenge_techs:
        flags["bot_detection_js"] = True

    if captcha_techs:
        challenge_type = "captcha"
    elif challenge_techs:
        challenge_type = "javascript"
    elif "browser_check" in phrase_categories:
        challenge_type = "browser_check"
    elif "rate_limit" in phrase_categories:
        challenge_type = "rate_limit"
    elif flags.get("suspicious_title"):
        challenge_type = "access_denied"
    else:
        challenge_type = None

    score = max(0, min(score, 100))
    logger.debug(f"Blocking score for {evidence.url}: {score} (challenge type: {challenge_type})")

    return BlockingAssessment(
        likely_blocked=score >= BLOCKING_THRESHOLD,
        score=score,
        indicators=BlockingIndicators(**flags),
        suspicious_phrases=phrases,
        challenge_type=challenge_type,
        detected_bot_protection_techs=captcha_techs + [t for t in challenge_techs if t not in captcha_techs],
    )
