"""Domain allow-list validation.

Every URL is checked here before any browser work happens. The admitted
hostnames are the built-in store list, EXTRA_ALLOWED_DOMAINS from config and
the active rows of the ``allowed_domains`` table. The database part is
cached as an immutable snapshot and refreshed on a TTL.
"""

import asyncio
import time
from typing import Awaitable, Callable, FrozenSet, Iterable, Optional
from urllib.parse import urlparse, ParseResult

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricewatch.config import settings
from pricewatch.core.exceptions import InvalidUrlError, UnsupportedDomainError, UnsupportedProtocolError
from pricewatch.models.allowed_domain import AllowedDomain
from pricewatch.scrapers.utils.normalizer import normalize_url

logger = structlog.get_logger(__name__)


def _with_www(*hosts: str) -> FrozenSet[str]:
    return frozenset(h for host in hosts for h in (host, f"www.{host}"))


BUILTIN_ALLOWED_DOMAINS: FrozenSet[str] = _with_www(
    "amazon.it", "amazon.com", "amazon.co.uk", "amazon.de", "amazon.fr", "amazon.es",
    "ebay.it", "ebay.com", "ebay.co.uk", "ebay.de", "ebay.fr", "ebay.es",
    "swappie.com",
    "backmarket.it", "backmarket.com", "backmarket.fr", "backmarket.de", "backmarket.es",
    "unieuro.it",
    "eprice.it",
    "zalando.it", "zalando.com", "zalando.de", "zalando.fr", "zalando.es",
    "aliexpress.com", "aliexpress.us",
    "juice.it",
    "mediaworld.it",
    "refurbed.it", "refurbed.de", "refurbed.fr",
    "smartgeneration.it",
    "reworklabs.it", "reworklabs.com", "rework-labs.com",
) | frozenset({"it.aliexpress.com", "m.aliexpress.com"})

ALLOWED_SCHEMES = ("http", "https")

DomainLoader = Callable[[], Awaitable[Iterable[str]]]


def database_domain_loader(session_factory: async_sessionmaker[AsyncSession]) -> DomainLoader:
    """Loader returning the hostnames of active AllowedDomain rows."""

    async def load() -> Iterable[str]:
        async with session_factory() as session:
            result = await session.execute(
                select(AllowedDomain.hostname).where(AllowedDomain.is_active == True)  # noqa: E712
            )
            return [row.lower() for row in result.scalars().all()]

    return load


def parse_url(url) -> ParseResult:
    """Parse and structurally check a URL.

    Raises:
        InvalidUrlError: empty, non-string, unparsable or host-less URLs
        UnsupportedProtocolError: schemes other than http/https
    """
    if not url or not isinstance(url, str) or not url.strip():
        raise InvalidUrlError("URL must be a non-empty string")

    try:
        parsed = urlparse(url.strip())
        parsed.port  # raises ValueError on a malformed port
    except ValueError:
        raise InvalidUrlError()

    scheme = parsed.scheme.lower()
    if not scheme:
        raise InvalidUrlError()
    if scheme not in ALLOWED_SCHEMES:
        raise UnsupportedProtocolError(scheme)
    if not parsed.hostname:
        raise InvalidUrlError()
    return parsed


class AllowListValidator:
    """Admits only URLs whose hostname is on the allow-list."""

    def __init__(
        self,
        static_domains: Optional[Iterable[str]] = None,
        loader: Optional[DomainLoader] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            static_domains: Always-allowed hostnames; defaults to the built-in
                stores plus EXTRA_ALLOWED_DOMAINS
            loader: Async callable returning the dynamic hostnames
            ttl_seconds: How long a dynamic snapshot stays fresh
            clock: Monotonic clock, injectable for tests
        """
        if static_domains is None:
            static_domains = BUILTIN_ALLOWED_DOMAINS | frozenset(settings.get_extra_allowed_domains())
        self.static_domains: FrozenSet[str] = frozenset(d.lower() for d in static_domains)
        self._loader = loader
        self._ttl = settings.ALLOWED_DOMAINS_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._dynamic: FrozenSet[str] = frozenset()
        self._loaded_at: Optional[float] = None
        self._refresh_lock = asyncio.Lock()
        self.logger = logger.bind(service="allow_list")

    def _is_stale(self) -> bool:
        return self._loaded_at is None or self._clock() - self._loaded_at >= self._ttl

    async def refresh(self) -> FrozenSet[str]:
        """Reload the dynamic hostnames; keeps the last good snapshot on failure."""
        if self._loader is None:
            return self._dynamic
        async with self._refresh_lock:
            if not self._is_stale():
                return self._dynamic
            try:
                loaded = frozenset(h.strip().lower() for h in await self._loader() if h and h.strip())
            except Exception as e:
                self.logger.warning("allow_list_load_failed", error=str(e), kept=len(self._dynamic))
            else:
                # Swap in one assignment; readers never see a partial set
                self._dynamic = loaded
                self.logger.debug("allow_list_refreshed", dynamic_count=len(loaded))
            self._loaded_at = self._clock()
        return self._dynamic

    async def allowed_domains(self) -> FrozenSet[str]:
        if self._loader is not None and self._is_stale():
            await self.refresh()
        return self.static_domains | self._dynamic

    async def is_allowed(self, hostname: str) -> bool:
        return hostname.lower().rstrip(".") in await self.allowed_domains()

    async def validate(self, url: str) -> str:
        """Validate a URL and return its canonical form.

        Raises:
            InvalidUrlError, UnsupportedProtocolError, UnsupportedDomainError
        """
        parsed = parse_url(url)
        hostname = parsed.hostname.lower().rstrip(".")
        if not await self.is_allowed(hostname):
            self.logger.info("domain_rejected", hostname=hostname)
            raise UnsupportedDomainError(hostname)
        return normalize_url(url.strip())


_validator: Optional[AllowListValidator] = None


def get_allow_list_validator() -> AllowListValidator:
    """Get the global validator, backed by the application database."""
    global _validator
    if _validator is None:
        from pricewatch.db.session import async_session_factory

        _validator = AllowListValidator(loader=database_domain_loader(async_session_factory))
    return _validator
