"""
NBFC Client
===========

HTTP client the Bank uses for the expense ratio reveal step.

Version: 0.1.0
"""

import base64

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shared.config import settings
from shared.exceptions import InvalidInputError
from shared.logging import get_logger


logger = get_logger(__name__)


class NBFCClient:
    """
    Async client for the NBFC service.

    Usage:
        async with NBFCClient() as client:
            ratio = await client.reveal_expense_ratio(session_id, encrypted_average)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: NBFC service URL (default from settings)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, e.g. ASGITransport in tests
        """
        self._base_url = base_url or settings.nbfc_url
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout or settings.nbfc_timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> "NBFCClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @retry(
        retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
        stop=stop_after_attempt(settings.nbfc_max_retries),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            "nbfc_retry",
            attempt=retry_state.attempt_number,
        ),
    )
    async def reveal_expense_ratio(self, session_id: str, encrypted_average: bytes) -> int:
        """
        Ask the NBFC to reveal an encrypted average as a ratio of salary.

        Returns:
            Ratio in basis points

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
            InvalidInputError: On a malformed response body
        """
        response = await self._client.post(
            f"/api/v1/sessions/{session_id}/expense-ratio",
            json={"encrypted_average": base64.b64encode(encrypted_average).decode("ascii")},
        )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "nbfc_http_error",
                status_code=e.response.status_code,
                session_id=session_id,
            )
            raise

        ratio = response.json().get("expense_ratio")
        if isinstance(ratio, bool) or not isinstance(ratio, int):
            raise InvalidInputError("NBFC returned no expense ratio")
        return ratio

    async def health_check(self) -> dict[str, str]:
        """Check the NBFC is reachable."""
        try:
            response = await self._client.get("/health")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("nbfc_unreachable", error=str(e))
            return {"status": "unhealthy", "url": self._base_url}
        return {"status": "healthy", "url": self._base_url}
