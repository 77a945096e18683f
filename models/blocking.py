from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class BlockingIndicators:
    status_code_suspicious: bool = False
    minimal_content: bool = False
    minimal_dom_elements: bool = False
    suspicious_title: bool = False
    access_denied_text: bool = False
    captcha_detected: bool = False
    challenge_detected: bool = False
    suspicious_elements: bool = False
    suspicious_redirects: bool = False
    unusual_response_time: bool = False
    bot_detection_js: bool = False


@dataclass(frozen=True)
class SuspiciousElement:
    tag: str
    id: str = ""
    class_name: str = ""


@dataclass(frozen=True)
class PageAnalysis:
    """Page-level facts shared by the blocking analyzer and the final result."""
    body_dom_element_count: int = 0
    dom_complexity: str = "LOW"
    content_type: str = ""
    title: str = ""
    description: str = ""
    language: str = "unknown"
    viewport: str = "not set"
    charset: str = "unknown"
    has_forms: bool = False
    has_javascript: bool = False
    external_resources: int = 0
    has_captcha_elements: bool = False
    has_challenge_elements: bool = False
    suspicious_elements: List[SuspiciousElement] = field(default_factory=list)


@dataclass(frozen=True)
class BlockingAssessment:
    """Estimate of whether a response is an anti-bot block or challenge page."""
    likely_blocked: bool = False
    score: int = 0
    indicators: BlockingIndicators = field(default_factory=BlockingIndicators)
    suspicious_phrases: List[str] = field(default_factory=list)
    challenge_type: Optional[str] = None
    detected_bot_protection_techs: List[str] = field(default_factory=list)

