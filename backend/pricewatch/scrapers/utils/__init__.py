"""Scraper utilities for identity rotation, pacing, retries and price parsing."""

from .rate_limiter import DomainRateLimiter, TokenBucket
from .proxy_manager import ProxyManager, ProxyDescriptor, parse_proxy
from .user_agents import UserAgentPool, USER_AGENTS, STORE_PREFERENCES
from .normalizer import parse_price, normalize_url
from .retry import RETRYABLE_EXCEPTIONS, backoff_wait, fetch_retrying


__all__ = [
    # Rate limiting
    "DomainRateLimiter",
    "TokenBucket",
    # Proxy management
    "ProxyManager",
    "ProxyDescriptor",
    "parse_proxy",
    # User agents
    "UserAgentPool",
    "USER_AGENTS",
    "STORE_PREFERENCES",
    # Normalization
    "parse_price",
    "normalize_url",
    # Retry policy
    "RETRYABLE_EXCEPTIONS",
    "backoff_wait",
    "fetch_retrying",
]
