"""HTTP client for the a11y fix service.

Failures are classified here, where the response is at hand, into a
:class:`~a11yfix.core.errors.FailureReason`. The retry policy only sees the
resulting :class:`~a11yfix.core.errors.ServiceError`.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from a11yfix.core.config import ServiceConfig
from a11yfix.core.errors import FailureReason, ServiceError

logger = logging.getLogger(__name__)

FIX_ENDPOINT = "/a11y/fix"

_RATE_LIMIT_RE = re.compile(r"rate limit.*?Please retry after (\d+) seconds", re.IGNORECASE)
_TIMEOUT_RE = re.compile(r"The operation was timeout", re.IGNORECASE)


def classify_error_detail(detail: str) -> tuple[FailureReason, int | None]:
    """Classify the error text sent back by the service.

    Returns the failure reason and, for rate limits, the delay in seconds
    the server asked for.
    """
    match = _RATE_LIMIT_RE.search(detail)
    if match:
        return FailureReason.RATE_LIMIT, int(match.group(1))
    if _TIMEOUT_RE.search(detail):
        return FailureReason.TIMEOUT, None
    return FailureReason.FATAL, None


def _error_detail(response: httpx.Response) -> str:
    try:
        details = response.json()
    except ValueError:
        return response.text
    if isinstance(details, dict):
        return str(details.get("error") or "")
    return ""


def _error_from_response(response: httpx.Response) -> ServiceError:
    detail = _error_detail(response)
    reason, retry_after = classify_error_detail(detail)

    if reason == FailureReason.FATAL and response.status_code == 429:
        header = response.headers.get("Retry-After", "")
        if header.isdigit():
            reason, retry_after = FailureReason.RATE_LIMIT, int(header)

    message = detail or f"HTTP {response.status_code} from fix service"
    return ServiceError(
        message,
        reason=reason,
        retry_after=retry_after,
        status_code=response.status_code,
        detail=detail,
    )


class FixServiceClient:
    """Sends one chunk at a time to the fix service."""

    def __init__(
        self,
        config: ServiceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialize the HTTP client."""
        if self._http is None:
            headers = {}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._http = httpx.AsyncClient(
                base_url=self.config.api_url,
                headers=headers,
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> FixServiceClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def request_fix(
        self,
        source_code: str,
        issues: list[str] | None = None,
        context: str | None = None,
        output_diff: bool = False,
    ) -> str:
        """Request a fix for ``source_code`` and return the service's text."""
        payload: dict[str, Any] = {
            "sourceCode": source_code,
            "onlyProvidedIssues": True,
            "outputDiff": output_diff,
        }
        if issues:
            payload["issues"] = list(issues)
        if context:
            payload["context"] = context

        try:
            response = await self._get_http().post(FIX_ENDPOINT, json=payload)
        except httpx.TimeoutException as exc:
            raise ServiceError(
                f"The operation was timeout: {exc}", reason=FailureReason.TIMEOUT
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceError(f"Could not reach fix service: {exc}") from exc

        if response.is_error:
            raise _error_from_response(response)

        try:
            body = response.json()
        except ValueError as exc:
            raise ServiceError(
                "Fix service returned invalid JSON", status_code=response.status_code
            ) from exc

        logger.debug("Received response from API: %s", body)
        suggestion = body.get("sourceCode") if isinstance(body, dict) else None
        if not isinstance(suggestion, str):
            raise ServiceError(
                "Fix service response has no sourceCode", status_code=response.status_code
            )
        return suggestion
