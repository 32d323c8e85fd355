from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from druid_frames.config import DEFAULT_TIMEOUT_SEC
from druid_frames.core.enums import QueryType
from druid_frames.core.errors import UpstreamExecutionFailure


NATIVE_QUERY_PATH = "/druid/v2/"
SQL_QUERY_PATH = "/druid/v2/sql/"

# Fields of the builder that the SQL endpoint does not accept
_SQL_BUILDER_ONLY_KEYS = ("queryType",)


class DruidClient:
    """Minimal Druid HTTP client returning raw response bodies.

    Native queries are posted to the broker's ``/druid/v2/`` endpoint and
    ``sql`` queries to ``/druid/v2/sql/``. Failures are not retried.

    The underlying ``httpx.Client`` is safe to share across threads, so one
    DruidClient may serve a whole batch.
    """

    def __init__(
        self,
        url: str,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.url,
            timeout=timeout_sec,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "DruidClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def execute(self, query: Dict[str, Any]) -> bytes:
        """Post a prepared query and return the raw response body.

        Raises:
            UpstreamExecutionFailure: On transport errors and non-2xx responses.
                The message carries the upstream error text verbatim.
        """
        logger = logging.getLogger(__name__)
        if query.get("queryType") == QueryType.SQL.value:
            path = SQL_QUERY_PATH
            payload = {k: v for k, v in query.items() if k not in _SQL_BUILDER_ONLY_KEYS}
        else:
            path = NATIVE_QUERY_PATH
            payload = query
        logger.debug("POST %s%s", self.url, path)
        try:
            resp = self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise UpstreamExecutionFailure(str(e)) from e
        if resp.is_error:
            raise UpstreamExecutionFailure(resp.text, status_code=resp.status_code)
        return resp.content


__all__ = ["DruidClient", "NATIVE_QUERY_PATH", "SQL_QUERY_PATH"]
