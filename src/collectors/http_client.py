"""
Cached HTTP Downloads
=====================

Small HTTP client used by the collectors for bulk dataset downloads
(the V-Dem country-year archive is ~50 MB, so it is cached on disk).

- Rate limiting between requests
- Bounded retries, then DataAcquisitionError
- On-disk cache keyed by URL hash, with expiry
"""

import time
import hashlib
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class DataAcquisitionError(RuntimeError):
    """Raised when a remote dataset cannot be fetched."""


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class DownloadConfig:
    """Politeness and caching settings for dataset downloads."""

    request_delay: float = 1.0  # Seconds between requests
    max_retries: int = 3
    retry_delay: float = 5.0

    request_timeout: int = 120
    chunk_size: int = 1 << 16

    cache_dir: Path = Path("./data/cache")
    cache_expiry_days: int = 30

    user_agent: str = "rd-aging-dynamics/1.0 (Research Project)"


# =============================================================================
# HTTP Client
# =============================================================================

class CachedHTTPClient:
    """HTTP client with rate limiting, retries and an on-disk file cache."""

    def __init__(self, config: Optional[DownloadConfig] = None, session=None):
        self.config = config or DownloadConfig()
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': self.config.user_agent})
        self.last_request_time = 0.0

        self.config.cache_dir.mkdir(parents=True, exist_ok=True)

    def cache_path(self, url: str, suffix: str = "") -> Path:
        """Cache file path for a URL."""
        url_hash = hashlib.md5(url.encode()).hexdigest()
        return self.config.cache_dir / f"{url_hash}{suffix}"

    def _is_cache_valid(self, path: Path) -> bool:
        if not path.exists() or path.stat().st_size == 0:
            return False
        age = time.time() - path.stat().st_mtime
        return age < self.config.cache_expiry_days * 24 * 60 * 60

    def _rate_limit(self):
        elapsed = time.time() - self.last_request_time
        if elapsed < self.config.request_delay:
            sleep_time = self.config.request_delay - elapsed
            logger.debug(f"Rate limiting: sleeping {sleep_time:.2f}s")
            time.sleep(sleep_time)
        self.last_request_time = time.time()

    def download(self, url: str, suffix: str = "", use_cache: bool = True) -> Path:
        """
        Download ``url`` into the cache and return the local path.

        The body is streamed to a ``.part`` file and renamed into place once
        complete; an interrupted download leaves nothing in the cache.
        Local I/O errors (``OSError``) are not retried and propagate.
        """
        target = self.cache_path(url, suffix)
        if use_cache and self._is_cache_valid(target):
            logger.info(f"Cache hit: {url}")
            return target

        partial = target.with_name(target.name + ".part")
        last_error = None

        for attempt in range(self.config.max_retries):
            self._rate_limit()
            try:
                logger.info(f"Downloading: {url}")
                with self.session.get(url, stream=True,
                                      timeout=self.config.request_timeout) as response:
                    response.raise_for_status()
                    with open(partial, 'wb') as f:
                        for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                            if chunk:
                                f.write(chunk)
                partial.replace(target)
                logger.info(f"Saved: {target} ({target.stat().st_size / 1024 / 1024:.1f} MB)")
                return target

            except requests.RequestException as e:
                last_error = e
                logger.error(f"Download failed (attempt {attempt + 1}): {e}")
                if attempt < self.config.max_retries - 1:
                    time.sleep(self.config.retry_delay)

            finally:
                if partial.exists():
                    partial.unlink()

        raise DataAcquisitionError(
            f"Could not download {url} after {self.config.max_retries} attempts"
        ) from last_error
