"""Single-request token exchange over HTTP."""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import requests

from ..models.results import ExchangeResult
from .errors import AuthErrorKind, map_error

logger = logging.getLogger(__name__)

# Body keys providers use to report an error code, in lookup order
_ERROR_CODE_KEYS = ("XErr", "error", "errorType", "reason")


@dataclass
class ExchangeRequest:
    """One outgoing exchange call."""

    step: str
    method: str
    url: str
    token: str  # credential the step depends on, must be non-empty
    error_table: Mapping[str, AuthErrorKind]
    json: Optional[dict[str, Any]] = None
    data: Optional[dict[str, Any]] = None
    headers: dict[str, str] = field(default_factory=dict)


class TokenExchangeClient:
    """Performs one HTTP round trip and normalizes the outcome.

    Transport failures and malformed bodies become ``UNKNOWN``. Provider error
    payloads are mapped through the request's error table. There are no
    retries here; retrying is a caller decision.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ):
        """
        Initialize exchange client.

        Args:
            session: HTTP session to reuse (a new one is created if omitted)
            timeout: Per-request timeout in seconds
        """
        self.session = session or requests.Session()
        self.timeout = timeout

    def exchange(self, request: ExchangeRequest) -> ExchangeResult[dict[str, Any]]:
        """
        Execute an exchange request.

        Args:
            request: Exchange request

        Returns:
            Tagged result holding the decoded JSON object on success
        """
        if not request.token:
            logger.error(f"{request.step}: refusing to send request without a credential")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN, "missing_token")

        headers = {"Accept": "application/json", **request.headers}
        try:
            response = self.session.request(
                request.method,
                request.url,
                json=request.json,
                data=request.data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{request.step}: transport error: {e}")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)

        body = self._decode(response)

        if response.status_code >= 400 or (body is not None and self._error_code(body)):
            code = self._error_code(body) if body is not None else None
            code = code or str(response.status_code)
            kind = map_error(request.error_table, code)
            if kind is AuthErrorKind.UNKNOWN and code != str(response.status_code):
                # Unmapped body code; the HTTP status may still be meaningful
                kind = map_error(request.error_table, str(response.status_code))
            logger.warning(
                f"{request.step}: provider error {code} (HTTP {response.status_code}) -> {kind.value}"
            )
            return ExchangeResult.failure(kind, code)

        if body is None:
            logger.error(f"{request.step}: malformed response (HTTP {response.status_code})")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)

        logger.debug(f"{request.step}: exchange succeeded")
        return ExchangeResult.success(body)

    @staticmethod
    def _decode(response: requests.Response) -> Optional[dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    @staticmethod
    def _error_code(body: Mapping[str, Any]) -> Optional[str]:
        for key in _ERROR_CODE_KEYS:
            value = body.get(key)
            if value:
                return str(value)
        if body.get("status") == "error":
            return "error"
        return None
