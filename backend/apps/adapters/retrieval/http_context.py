# apps/adapters/retrieval/http_context.py

"""
HTTP Context Retriever

Implements IContextRetriever against the business application's
semantic search endpoint (POST {query, maxResults} -> {context}).
"""

import logging

import requests

from apps.domain.models import RetrieverError

logger = logging.getLogger(__name__)


class HttpContextRetriever:
    """Fetches retrieved context text over HTTP"""

    def __init__(
        self,
        base_url: str,
        path: str = "/api/rag/context",
        max_results: int = 8,
        timeout: float = 10.0,
        session: requests.Session = None,
    ):
        """
        Args:
            base_url: Root URL of the business application
            path: Context endpoint path
            max_results: Number of documents the endpoint should merge
            timeout: Request timeout in seconds
            session: Optional requests session (for connection reuse)
        """
        self.url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
        self.max_results = max_results
        self.timeout = timeout
        self._http = session or requests.Session()

    def retrieve(self, query: str) -> str:
        """
        Get context text for a query

        Returns:
            Context text ('' when the endpoint has nothing)

        Raises:
            RetrieverError: If the request fails or the response is not JSON
        """
        try:
            r = self._http.post(
                self.url,
                json={"query": query, "maxResults": self.max_results},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RetrieverError(f"Context request failed: {e}") from e

        if r.status_code != 200:
            raise RetrieverError(f"Context endpoint returned {r.status_code}: {r.text[:200]}")

        try:
            data = r.json()
        except ValueError as e:
            raise RetrieverError(f"Context endpoint returned non-JSON: {e}") from e

        context = data.get("context") if isinstance(data, dict) else None
        logger.debug(f"Context endpoint returned {len(context or '')} chars")
        return context or ""
