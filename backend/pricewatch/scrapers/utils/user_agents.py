"""User-Agent rotation for anti-detection."""

import random
import threading
from typing import Dict, List, Optional, Sequence


# Desktop Chrome, Firefox, Safari and Edge on Windows, macOS and Linux
USER_AGENTS: List[str] = [
    # Chrome on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36",
    # Chrome on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    # Firefox on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:132.0) Gecko/20100101 Firefox/132.0",
    # Firefox on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:133.0) Gecko/20100101 Firefox/133.0",
    # Safari on macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.1 Safari/605.1.15",
    # Edge on Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36 Edg/130.0.0.0",
    # Chrome on Linux
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
]

# Browser families each store is known to serve without friction
STORE_PREFERENCES: Dict[str, List[str]] = {
    "amazon": ["chrome", "edge"],
    "ebay": ["chrome", "firefox"],
    "aliexpress": ["chrome"],
}


def browser_family(user_agent: str) -> str:
    """Classify a user-agent string into chrome/edge/firefox/safari."""
    if "Edg/" in user_agent:
        return "edge"
    if "Firefox/" in user_agent:
        return "firefox"
    if "Chrome/" in user_agent:
        return "chrome"
    if "Safari/" in user_agent:
        return "safari"
    return "other"


class UserAgentPool:
    """Rotating pool of desktop user agents with per-store affinities.

    The "last used" pointer is shared by every caller, so it is guarded
    by a lock.
    """

    def __init__(
        self,
        user_agents: Optional[Sequence[str]] = None,
        store_preferences: Optional[Dict[str, List[str]]] = None,
    ):
        self._agents: List[str] = list(user_agents if user_agents is not None else USER_AGENTS)
        if not self._agents:
            raise ValueError("UserAgentPool needs at least one user agent")
        self._preferences = store_preferences if store_preferences is not None else STORE_PREFERENCES
        self._last: Optional[str] = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._agents)

    def all(self) -> List[str]:
        return list(self._agents)

    def add(self, user_agent: str) -> None:
        with self._lock:
            if user_agent and user_agent not in self._agents:
                self._agents.append(user_agent)

    def random(self) -> str:
        with self._lock:
            self._last = random.choice(self._agents)
            return self._last

    def pick_for_domain(self, domain: str) -> str:
        """Pick a user agent biased toward the store's preferred browsers.

        Args:
            domain: Hostname being fetched (e.g. "www.amazon.it")

        Returns:
            User agent from the affinity subset when the hostname contains a
            known store key, otherwise a uniformly random one
        """
        domain = (domain or "").lower()
        for store_key, families in self._preferences.items():
            if store_key in domain:
                preferred = [ua for ua in self._agents if browser_family(ua) in families]
                if preferred:
                    with self._lock:
                        self._last = random.choice(preferred)
                        return self._last
                break
        return self.random()

    def pick_different_from_last(self) -> str:
        """Pick a user agent that differs from the previous pick.

        Guaranteed whenever the pool holds more than one distinct string.
        """
        with self._lock:
            candidates = [ua for ua in self._agents if ua != self._last]
            if not candidates:
                candidates = self._agents
            self._last = random.choice(candidates)
            return self._last

    @property
    def last(self) -> Optional[str]:
        return self._last
