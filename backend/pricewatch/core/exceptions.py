"""Custom exception classes for the application."""

from typing import Optional


class PriceWatchException(Exception):
    """Base exception for all PriceWatch errors."""

    code = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(PriceWatchException):
    """Raised when a requested resource is not found."""

    code = "not_found"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' not found")


# ---------------------------------------------------------------------------
# URL validation (never retried)
# ---------------------------------------------------------------------------


class UrlValidationError(PriceWatchException):
    """Raised when a URL is rejected before any fetch happens."""

    code = "invalid_url"


class InvalidUrlError(UrlValidationError):
    """The URL is empty, unparsable or has no host."""

    code = "invalid_url"

    def __init__(self, message: str = "Invalid URL format"):
        super().__init__(message)


class UnsupportedProtocolError(UrlValidationError):
    """The URL scheme is not http or https."""

    code = "unsupported_protocol"

    def __init__(self, scheme: str = ""):
        self.scheme = scheme
        super().__init__("URL must use HTTP or HTTPS protocol")


class UnsupportedDomainError(UrlValidationError):
    """The hostname is not on the allow-list."""

    code = "unsupported_domain"

    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(f"Domain '{hostname}' is not supported")


# ---------------------------------------------------------------------------
# Scraping
# ---------------------------------------------------------------------------


class ScraperError(PriceWatchException):
    """Raised when a scraper encounters an error."""

    code = "scraper_error"

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(f"Scraper error for {platform}: {message}")


class FetchFailedError(ScraperError):
    """All fetch attempts failed with transport or timeout errors."""

    code = "fetch_failed"

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        reason = f"{type(cause).__name__}: {cause}" if cause else "unknown error"
        super().__init__(url, f"failed after {attempts} attempt(s) ({reason})")


class ChallengeBlockedError(ScraperError):
    """The site kept serving an automated-traffic challenge."""

    code = "challenge_blocked"

    def __init__(self, url: str, attempts: int, challenge_type: Optional[str] = None):
        self.url = url
        self.attempts = attempts
        self.challenge_type = challenge_type
        super().__init__(
            url,
            f"blocked by {challenge_type or 'an unknown challenge'} after {attempts} attempt(s)",
        )


class ChallengeDetectedError(ScraperError):
    """A single attempt hit a challenge page. Retried by the fetch orchestrator."""

    code = "challenge_detected"

    def __init__(self, url: str, challenge_type: Optional[str] = None, confidence: int = 0):
        self.url = url
        self.challenge_type = challenge_type
        self.confidence = confidence
        super().__init__(url, f"challenge detected ({challenge_type}, confidence {confidence})")
