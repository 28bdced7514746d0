"""BioMart HTTP client with persistent caching."""

import logging
from pathlib import Path
from typing import Any

import requests
import requests_cache

from refbundle.config.schema import PipelineConfig
from refbundle.errors import TransferFailure

logger = logging.getLogger(__name__)

# BioMart reports query errors in a 200 response body
BIOMART_ERROR_PREFIX = "Query ERROR"


class BiomartClient:
    """
    HTTP client for BioMart martservice queries.

    Responses are cached in a SQLite database so that repeated queries for the
    same release do not hit the archive hosts again. Failures are not retried:
    any HTTP or network error is raised as TransferFailure.
    """

    def __init__(
        self,
        cache_dir: Path,
        cache_ttl: int = 86400,
        timeout: int = 300,
    ):
        """
        Initialize client with a persistent response cache.

        Args:
            cache_dir: Directory for SQLite cache storage
            cache_ttl: Cache time-to-live in seconds (0 = infinite)
            timeout: Request timeout in seconds
        """
        self.cache_dir = Path(cache_dir)
        self.timeout = timeout

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        cache_path = self.cache_dir / "biomart_cache"
        expire_after = cache_ttl if cache_ttl > 0 else None

        self.session = requests_cache.CachedSession(
            cache_name=str(cache_path),
            backend="sqlite",
            expire_after=expire_after,
        )

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        **kwargs,
    ) -> requests.Response:
        """
        Make GET request through the cache.

        Raises:
            TransferFailure: On HTTP error status, timeout or connection error
        """
        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransferFailure(f"Request to {url} failed: {e}") from e

        if getattr(response, "from_cache", False):
            logger.debug(f"Served from cache: {url}")

        return response

    def query(self, url: str, query_xml: str) -> str:
        """
        Run a BioMart XML query and return the TSV body.

        Args:
            url: martservice endpoint, e.g. http://host/biomart/martservice
            query_xml: BioMart query document

        Returns:
            Response body as text

        Raises:
            TransferFailure: On request failure or a BioMart query error
        """
        logger.info(f"BioMart query: {url}")
        text = self.get(url, params={"query": query_xml}).text

        if text.lstrip().startswith(BIOMART_ERROR_PREFIX):
            raise TransferFailure(
                f"BioMart rejected query at {url}: {text.strip()[:500]}"
            )

        return text

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "BiomartClient":
        """
        Create client from pipeline configuration.

        Args:
            config: PipelineConfig instance

        Returns:
            Configured BiomartClient instance
        """
        return cls(
            cache_dir=config.cache_dir,
            cache_ttl=config.biomart.cache_ttl_seconds,
            timeout=config.biomart.timeout_seconds,
        )

    def clear_cache(self) -> None:
        """Clear all cached responses."""
        self.session.cache.clear()
        logger.info("BioMart cache cleared")
