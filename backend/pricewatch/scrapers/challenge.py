"""Automated-traffic challenge detection.

Scores a captured page against title phrases, URL paths, widget selectors and
body text. A score of 30 or more means the page is a challenge rather than the
product page we asked for.
"""

import re
import threading
from collections import Counter, deque
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple

import structlog

from pricewatch.scrapers.base import PageSnapshot

logger = structlog.get_logger(__name__)


DETECTION_THRESHOLD = 30
MAX_CONFIDENCE = 100
BODY_SCAN_CHARS = 5000
LOG_SIZE = 100

# Matched as whole phrases; a lone "robot" or "challenge" is a product word
TITLE_PATTERNS = [
    "captcha",
    "security check",
    "verify you are human",
    "are you a robot",
    "not a robot",
    "robot check",
    "access denied",
    "please verify",
    "unusual traffic",
    "automated access",
    "just a moment",
]

_TITLE_REGEXES = [(p, re.compile(rf"\b{re.escape(p)}\b")) for p in TITLE_PATTERNS]

URL_PATTERNS = [
    "/captcha",
    "/challenge",
    "/security-check",
    "/robot-check",
    "/validate",
]

TEXT_PATTERNS = [
    "please complete the security check",
    "verify you are a human",
    "prove you are not a robot",
    "enable javascript and cookies",
    "checking your browser",
    "this process is automatic",
    "type the characters you see in this image",
]

# (selector, family). Family None means a generic marker with no known vendor.
WIDGET_SELECTORS: List[Tuple[str, Optional[str]]] = [
    ('iframe[src*="recaptcha"]', "reCAPTCHA"),
    ('iframe[src*="google.com/recaptcha"]', "reCAPTCHA"),
    (".g-recaptcha", "reCAPTCHA"),
    ("#recaptcha", "reCAPTCHA"),
    ('iframe[src*="hcaptcha"]', "hCaptcha"),
    (".h-captcha", "hCaptcha"),
    ('iframe[src*="challenges.cloudflare"]', "Cloudflare"),
    ("#cf-wrapper", "Cloudflare"),
    (".cf-browser-verification", "Cloudflare"),
    ("#challenge-form", "Cloudflare"),
    ("#challenge-running", "Cloudflare"),
    ('iframe[src*="datadome"]', "DataDome"),
    ('iframe[src*="px-captcha"]', "PerimeterX"),
    ("#px-captcha", "PerimeterX"),
    ('form[action*="validateCaptcha"]', "Amazon CAPTCHA"),
    ("#captchacharacters", "Amazon CAPTCHA"),
    ('[class*="captcha"]', None),
    ('[id*="captcha"]', None),
    ('form[action*="captcha"]', None),
]

# Vendor reported when several families fire
TYPE_PRIORITY = [
    "reCAPTCHA",
    "hCaptcha",
    "Cloudflare",
    "DataDome",
    "PerimeterX",
    "Amazon CAPTCHA",
]

UNKNOWN_TYPE = "Unknown CAPTCHA"

_SELECTOR_FAMILY = dict(WIDGET_SELECTORS)


@dataclass
class ChallengeIndicator:
    """One signal that fired."""

    kind: str  # "title" | "url" | "selector" | "text"
    pattern: str
    score: int
    visible: Optional[bool] = None


@dataclass
class ChallengeDetectionResult:
    """Outcome of inspecting one page."""

    detected: bool = False
    challenge_type: Optional[str] = None
    confidence: int = 0
    indicators: List[ChallengeIndicator] = field(default_factory=list)
    url: str = ""
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["checked_at"] = self.checked_at.isoformat()
        return data


def probe_selectors() -> List[str]:
    """Selectors the fetch orchestrator should probe on the live page."""
    return [selector for selector, _ in WIDGET_SELECTORS]


def classify(indicators: List[ChallengeIndicator]) -> Optional[str]:
    """Pick the challenge vendor from the selectors that fired."""
    families = {
        _SELECTOR_FAMILY.get(i.pattern)
        for i in indicators
        if i.kind == "selector"
    }
    for family in TYPE_PRIORITY:
        if family in families:
            return family
    return UNKNOWN_TYPE if indicators else None


class ChallengeDetector:
    """Scores pages for challenge likelihood and keeps a ring log of hits."""

    def __init__(self, log_size: int = LOG_SIZE):
        self._log: Deque[ChallengeDetectionResult] = deque(maxlen=log_size)
        self._lock = threading.Lock()
        self.logger = logger.bind(service="challenge_detector")

    def inspect(self, page: PageSnapshot) -> ChallengeDetectionResult:
        """Score a captured page.

        Args:
            page: Snapshot of the loaded page

        Returns:
            ChallengeDetectionResult; errors during inspection yield a
            non-detected result carrying the error message
        """
        result = ChallengeDetectionResult(url=page.url)
        try:
            score = 0

            title = (page.title or "").lower()
            for pattern, regex in _TITLE_REGEXES:
                if regex.search(title):
                    result.indicators.append(ChallengeIndicator("title", pattern, 30))
                    score += 30

            url = (page.url or "").lower()
            for pattern in URL_PATTERNS:
                if pattern in url:
                    result.indicators.append(ChallengeIndicator("url", pattern, 25))
                    score += 25

            for selector, _family in WIDGET_SELECTORS:
                state = page.widget_state(selector)
                if state is None:
                    continue
                visible = state == "visible"
                points = 40 if visible else 20
                result.indicators.append(ChallengeIndicator("selector", selector, points, visible))
                score += points

            body = (page.body_text or "")[:BODY_SCAN_CHARS].lower()
            for pattern in TEXT_PATTERNS:
                if pattern in body:
                    result.indicators.append(ChallengeIndicator("text", pattern, 35))
                    score += 35

            result.challenge_type = classify(result.indicators)
            result.detected = score >= DETECTION_THRESHOLD
            result.confidence = min(MAX_CONFIDENCE, score)
        except Exception as e:
            self.logger.error("challenge_inspection_failed", url=page.url, error=str(e), exc_info=True)
            return ChallengeDetectionResult(url=page.url, error=str(e))

        if result.detected:
            with self._lock:
                self._log.append(result)
            self.logger.warning(
                "challenge_detected",
                url=result.url,
                challenge_type=result.challenge_type,
                confidence=result.confidence,
                indicators=len(result.indicators),
            )
        return result

    def stats(self) -> dict:
        """Totals and the 10 most recent detections."""
        with self._lock:
            entries = list(self._log)
        by_type = Counter(e.challenge_type or UNKNOWN_TYPE for e in entries)
        return {
            "total_detections": len(entries),
            "by_type": dict(by_type),
            "recent": [
                {
                    "url": e.url,
                    "type": e.challenge_type,
                    "confidence": e.confidence,
                    "checked_at": e.checked_at.isoformat(),
                }
                for e in entries[-10:]
            ],
        }

    def clear(self) -> None:
        with self._lock:
            self._log.clear()


_detector: Optional[ChallengeDetector] = None


def get_challenge_detector() -> ChallengeDetector:
    """Get the global ChallengeDetector singleton."""
    global _detector
    if _detector is None:
        _detector = ChallengeDetector()
    return _detector
