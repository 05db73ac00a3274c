"""
Minimal HTTP GET helper shared by the iHOP scraper and the Pathway Commons client.

Every fetch is a single blocking attempt with a bounded timeout, run in a
worker thread so it never blocks the event loop. Failures are raised as
TransportError / TransportTimeoutError.
"""

import asyncio
import http.client
import logging
import urllib.error
import urllib.request
from typing import Awaitable, Callable

from ..core.exceptions import TransportError, TransportTimeoutError

logger = logging.getLogger(__name__)

# Async callable url -> page text; the scraper and clients accept any such callable.
Fetcher = Callable[[str], Awaitable[str]]


def fetch_text(url: str, source_name: str, timeout: float = 30.0,
               user_agent: str = "pcviz/0.1") -> str:
    """
    Retrieve a page and decode it as text.

    Raises:
        TransportTimeoutError: the request exceeded ``timeout``
        TransportError: any other network, protocol or decoding failure
    """
    req = urllib.request.Request(url, headers={"User-Agent": user_agent})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            charset = resp.headers.get_content_charset() or "latin-1"
            return resp.read().decode(charset, errors="replace")
    except TimeoutError as e:
        raise TransportTimeoutError(source_name, url, timeout) from e
    except urllib.error.URLError as e:
        if isinstance(e.reason, TimeoutError):
            raise TransportTimeoutError(source_name, url, timeout) from e
        raise TransportError(source_name, url, f"{source_name} request failed: {e}") from e
    except (OSError, ValueError, LookupError, http.client.HTTPException) as e:
        # bad charset or broken HTTP framing
        raise TransportError(source_name, url, f"{source_name} request failed: {e}") from e


class PageFetcher:
    """Async fetcher bound to one source, timeout and user agent."""

    def __init__(self, source_name: str, timeout: float = 30.0, user_agent: str = "pcviz/0.1"):
        self.source_name = source_name
        self.timeout = timeout
        self.user_agent = user_agent

    async def __call__(self, url: str) -> str:
        logger.debug(f"GET {url}")
        return await asyncio.to_thread(
            fetch_text, url, self.source_name, self.timeout, self.user_agent
        )
