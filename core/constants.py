"""Fixed scoring tables for technology detection and blocking analysis."""
import re
from enum import Enum

from models.detection import ConfidenceLevel
from models.signature import PatternPriority

# Global confidence threshold levels
CONFIDENCE_THRESHOLDS = {
    ConfidenceLevel.HIGH: 80,
    ConfidenceLevel.MEDIUM: 60,
    ConfidenceLevel.LOW: 40,
}

MAX_CONFIDENCE = 100.0


class DetectionMode(str, Enum):
    STRICT = "STRICT"
    NORMAL = "NORMAL"
    LOOSE = "LOOSE"

    @property
    def threshold(self) -> int:
        return TECH_DETECTION_MODE_CONFIDENCE[self]


TECH_DETECTION_MODE_CONFIDENCE = {
    DetectionMode.STRICT: CONFIDENCE_THRESHOLDS[ConfidenceLevel.HIGH],
    DetectionMode.NORMAL: CONFIDENCE_THRESHOLDS[ConfidenceLevel.MEDIUM],
    DetectionMode.LOOSE: CONFIDENCE_THRESHOLDS[ConfidenceLevel.LOW],
}


def get_confidence_level(confidence: float) -> ConfidenceLevel:
    for level, threshold in CONFIDENCE_THRESHOLDS.items():
        if confidence >= threshold:
            return level
    return ConfidenceLevel.NONE


# Default base confidence for bare signature strings, per channel
DETECTION_TYPE_CONFIDENCE = {
    "js": 60,
    "scriptSrc": 70,
    "headers": 80,
    "cookies": 85,
    "meta": 50,
    "dom": 65,
    "html": 40,
}

DETECTION_TYPE_PRIORITY = {
    "cookies": PatternPriority.HIGH,
    "headers": PatternPriority.HIGH,
    "scriptSrc": PatternPriority.MEDIUM,
    "js": PatternPriority.MEDIUM,
    "meta": PatternPriority.LOW,
    "dom": PatternPriority.MEDIUM,
    "html": PatternPriority.MEDIUM,
}

DEFAULT_CONFIDENCE = 50
DEFAULT_PRIORITY = PatternPriority.MEDIUM

# Fixed scores used by the key-value and selector channels
HEADER_MATCH_CONFIDENCE = 75
COOKIE_MATCH_CONFIDENCE = 85
DOM_MATCH_CONFIDENCE = 45

FUZZY_SIMILARITY_THRESHOLD = 0.7

# Hard timeout per regex evaluation (seconds), against catastrophic backtracking
REGEX_TIMEOUT_SECONDS = 0.8
# Evidence strings longer than this are truncated before matching
MAX_SCAN_LENGTH = 200_000

# --- Blocking analysis -------------------------------------------------------

BLOCKING_THRESHOLD = 40

SUSPICIOUS_STATUS_CODES = frozenset(
    [403, 429, 503, 520, 521, 522, 523, 524, 525, 526, 527, 530]
)

# Points added per signal. Only the relative ordering is meaningful.
BLOCKING_WEIGHTS = {
    "status_code": 60,
    "very_few_elements": 70,
    "few_elements": 30,
    "minimal_content": 30,
    "suspicious_title": 30,
    "challenge_markup": 10,
    "suspicious_elements": 10,
    "suspicious_phrase": 10,
    "redirects": 10,
    "response_time": 10,
}

VERY_FEW_ELEMENTS = 10
FEW_ELEMENTS = 50
MINIMAL_TEXT_LENGTH = 500
SUSPICIOUS_REDIRECT_COUNT = 2
SLOW_RESPONSE_MS = 10_000

# (pattern, category) pairs; category feeds the challenge type classifier
SUSPICIOUS_PHRASE_PATTERNS = [
    (re.compile(r"\brate ?limit(ed)?\b", re.IGNORECASE), "rate_limit"),
    (re.compile(r"\btoo many requests\b", re.IGNORECASE), "rate_limit"),
    (re.compile(r"\bsuspicious (activity|traffic)\b", re.IGNORECASE), None),
    (re.compile(r"\baccess (denied|restricted|blocked)\b", re.IGNORECASE), None),
    (re.compile(r"\b(blocked|your connection has been blocked)\b", re.IGNORECASE), None),
    (re.compile(r"\b(request looks automated|automated request)\b", re.IGNORECASE), None),
    (re.compile(r"\bunusual traffic\b", re.IGNORECASE), None),
    (re.compile(r"\bverify (you are )?(human|(ro)?bot)\b", re.IGNORECASE), None),
    (re.compile(r"\b((ro)?bot check|you are not a (ro)?bot)\b", re.IGNORECASE), None),
    (re.compile(r"\bsolve (the )?(captcha|puzzle|challenge)\b", re.IGNORECASE), None),
    (re.compile(r"\b(security check|browser verification|checking your browser)\b", re.IGNORECASE), "browser_check"),
    (re.compile(r"\bcloudflare\b", re.IGNORECASE), None),
    (re.compile(r"\bddos protection\b", re.IGNORECASE), None),
    (re.compile(r"\bplease wait\b", re.IGNORECASE), None),
    (
        re.compile(
            r"\b(cookies|javascript)\b.*\b(enabled|disabled)\b|\b(enabled|disabled)\b.*\b(cookies|javascript)\b",
            re.IGNORECASE,
        ),
        None,
    ),
]

SUSPICIOUS_TITLE_PATTERNS = [
    re.compile(r"\bjust a moment\b", re.IGNORECASE),
    re.compile(r"\bplease wait\b", re.IGNORECASE),
    re.compile(r"\b(blocked|blocked access)\b", re.IGNORECASE),
    re.compile(r"\b(error|error \d{3})\b", re.IGNORECASE),
    re.compile(r"\bsecurity (check|verification)\b", re.IGNORECASE),
    re.compile(r"\bddos protection\b", re.IGNORECASE),
    re.compile(r"\b(ro)?bot detection\b", re.IGNORECASE),
    re.compile(r"\b(human)\b.*\b((ro)?bot)\b|\b((ro)?bot)\b.*\b(human)\b", re.IGNORECASE),
]

# Title phrasing that also sets the access-denied indicator
ACCESS_DENIED_TITLE_PATTERNS = [
    re.compile(r"\b(access|permission) denied\b", re.IGNORECASE),
    re.compile(r"\bforbidden\b", re.IGNORECASE),
    re.compile(r"\bunauthorized\b", re.IGNORECASE),
]

CAPTCHA_SELECTOR = ".g-recaptcha, .h-captcha, .cf-turnstile, [data-sitekey]"
CAPTCHA_SOURCE_PATTERN = re.compile(r"recaptcha|hcaptcha|turnstile", re.IGNORECASE)

CHALLENGE_SELECTOR = '[id*="challenge"], [class*="challenge"], [id*="verification"], [class*="verification"]'
CHALLENGE_SOURCE_PATTERN = re.compile(r"challenge-platform|browser-verification", re.IGNORECASE)

SUSPICIOUS_SELECTORS = [
    '[id*="captcha"]',
    '[class*="captcha"]',
    '[id*="protection"]',
    '[class*="protection"]',
]

CAPTCHA_TECHNOLOGIES = [
    "captcha",
    "recaptcha",
    "hcaptcha",
    "turnstile",
    "geetest",
    "keycaptcha",
    "arkose",
    "funcaptcha",
]

CHALLENGE_TECHNOLOGIES = [
    "cloudflare",
    "datadome",
    "imperva",
    "akamai",
    "perimeterx",
    "incapsula",
]
