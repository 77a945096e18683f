import httpx
import logging
import time
from dataclasses import dataclass
from typing import Optional, Dict

# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_MAX_REDIRECTS = 10

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
}


@dataclass(frozen=True)
class FetchedPage:
    response: httpx.Response
    response_time: float # milliseconds, including redirects
    redirect_count: int


async def fetch_url(
    url: str,
    timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchedPage:
    """
    Fetches a URL, following redirects, and records latency and redirect count.
    
    Args:
        url: The URL to fetch
        timeout: Total request timeout in seconds (default: 10s)
        connect_timeout: Connection timeout in seconds (default: 5s)
        headers: Optional extra HTTP headers (merged over the default User-Agent)
        max_redirects: Maximum number of redirects to follow
        transport: Optional httpx transport (used by tests)
    
    Returns:
        FetchedPage wrapping the final httpx.Response
    """
    logger = logging.getLogger(__name__)
    logger.debug(f"HTTP GET {url} (timeout: {timeout or DEFAULT_TIMEOUT}s)")
    
    timeout_config = httpx.Timeout(
        timeout=timeout or DEFAULT_TIMEOUT,
        connect=connect_timeout or DEFAULT_CONNECT_TIMEOUT
    )
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}
    
    start = time.perf_counter()
    try:
        async with httpx.AsyncClient(
            timeout=timeout_config,
            follow_redirects=True,
            max_redirects=max_redirects,
            transport=transport,
        ) as client:
            response = await client.get(url, headers=request_headers)
    except httpx.TimeoutException as e:
        logger.warning(f"HTTP timeout for {url}: {e}")
        raise
    except httpx.RequestError as e:
        logger.warning(f"HTTP request error for {url}: {e}")
        raise

    response_time = (time.perf_counter() - start) * 1000
    redirect_count = len(response.history)
    logger.debug(f"HTTP {response.status_code} {url} ({len(response.text)} bytes, {redirect_count} redirects, {response_time:.0f}ms)")
    # Don't raise for status - block pages are usually 403/429/503
    return FetchedPage(response=response, response_time=response_time, redirect_count=redirect_count)
