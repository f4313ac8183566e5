"""
Handles the low-level retrieval of manifests and byte-ranged fragments over HTTP.
"""

import asyncio
import logging

import aiohttp

from hlsgrab.exceptions import FetchError
from hlsgrab.media.manifest_parser import decode_manifest
from hlsgrab.models.manifest import ByteRange, fetch_key

from .retry import RetryManager

log = logging.getLogger(__name__)

MANIFEST_TIMEOUT = 10.0
FRAGMENT_TIMEOUT = 30.0
SUCCESS_STATUSES = (200, 206)

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


async def get_connection_pool(max_workers: int = 4) -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    The session only pools connections; retry counters and reassembly state
    live in each pipeline.

    Args:
        max_workers: Maximum concurrent pipelines (should match config.max_workers).
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=max_workers * 2,
            limit_per_host=max_workers,
            ttl_dns_cache=600,  # 10 minutes
            keepalive_timeout=30,
            enable_cleanup_closed=True,
        )
        _connection_pool = aiohttp.ClientSession(connector=connector)
        log.debug(f"Created download pool with limit_per_host={max_workers}")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared fetcher connection pool closed.")


class FragmentFetcher:
    """Fetches whole resources or byte ranges, retrying through a RetryManager."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        retry_manager: RetryManager | None = None,
        fragment_timeout: float = FRAGMENT_TIMEOUT,
        manifest_timeout: float = MANIFEST_TIMEOUT,
        headers: dict[str, str] | None = None,
    ):
        self.session = session
        self.retry_manager = retry_manager or RetryManager()
        self.fragment_timeout = fragment_timeout
        self.manifest_timeout = manifest_timeout
        self.headers = dict(headers or {})

    async def _get(
        self, url: str, byte_range: ByteRange | None, timeout: float
    ) -> bytes:
        """Performs a single GET. Any non-200/206 status raises FetchError."""
        headers = dict(self.headers)
        if byte_range is not None:
            headers["Range"] = byte_range.header_value()

        async with self.session.get(
            url,
            headers=headers,
            allow_redirects=True,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if response.status not in SUCCESS_STATUSES:
                raise FetchError(
                    f"HTTP {response.status} while fetching '{url}'",
                    url=url,
                    status=response.status,
                )
            data = await response.read()

        if (
            byte_range is not None
            and response.status == 206
            and len(data) != byte_range.length
        ):
            log.debug(
                f"Range {byte_range.header_value()} of '{url}' returned "
                f"{len(data)} bytes, expected {byte_range.length}."
            )
        return data

    async def fetch(self, url: str, byte_range: ByteRange | None = None) -> bytes:
        """
        Retrieves a media fragment, retrying transport errors, bad statuses and
        timeouts.

        Raises:
            RetryExhaustedError: When every attempt failed.
        """
        return await self.retry_manager.execute(
            fetch_key(url, byte_range),
            lambda: self._get(url, byte_range, self.fragment_timeout),
        )

    async def fetch_text(self, url: str) -> str:
        """
        Retrieves a manifest as UTF-8 text using the shorter manifest timeout.

        Raises:
            RetryExhaustedError: When every attempt failed.
            ParseError: If the body is not valid UTF-8.
        """
        data = await self.retry_manager.execute(
            url, lambda: self._get(url, None, self.manifest_timeout)
        )
        return decode_manifest(data, url)
