"""HTTP delivery of pulses to the Code::Stats API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from codestats import __version__
from codestats.config import CodeStatsConfig
from codestats.errors import (
    CodeStatsError,
    InsecureServerError,
    ResponseReadFailure,
    TransportFailure,
)
from codestats.models import PulsePayload

logger = logging.getLogger(__name__)

# 5s read/write/pool; connecting may take longer on a cold network
DEFAULT_TIMEOUT = httpx.Timeout(5.0, connect=30.0)

USER_AGENT = f"codestats-pulse/{__version__}"


@dataclass
class SendResult:
    """Outcome of a single pulse delivery."""

    success: bool
    response_text: Optional[str] = None
    error: Optional[CodeStatsError] = None


class PulseSender:
    """Posts pulses over HTTPS. Never retries and never raises on delivery errors."""

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
    ):
        """Initialize the sender.

        Args:
            transport: Optional httpx transport, mainly for tests
            timeout: Timeouts applied to every request
            user_agent: Value of the User-Agent header
        """
        self._client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    def send(self, payload: PulsePayload, config: CodeStatsConfig) -> SendResult:
        """Send one pulse.

        Args:
            payload: The pulse to send
            config: Server and API key to send it with

        Returns:
            SendResult describing the exchange
        """
        if config.key is None:
            raise ValueError("Cannot send a pulse without an API key")

        url = config.pulses_url
        body = payload.to_json()

        try:
            scheme = httpx.URL(url).scheme
        except httpx.InvalidURL as e:
            return self._failed(body, TransportFailure(f"Invalid server URL {url!r}: {e}"))
        if scheme != "https":
            return self._failed(body, InsecureServerError(url))

        try:
            with self._client.stream(
                "POST",
                url,
                content=body,
                headers={
                    "X-API-Token": config.key,
                    "Content-Type": "application/json",
                },
            ) as response:
                return self._read_response(response, body)
        except httpx.HTTPError as e:
            return self._failed(body, TransportFailure(f"{type(e).__name__}: {e}"))

    def _read_response(self, response: httpx.Response, body: str) -> SendResult:
        try:
            response.read()
        except httpx.HTTPError as e:
            error = ResponseReadFailure(f"{type(e).__name__}: {e}")
            logger.warning(f"Reading server response for {body} failed: {error}")
            return SendResult(success=False, error=error)

        text = response.text
        if response.is_error:
            return self._failed(
                body,
                TransportFailure(
                    f"Server returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    response_text=text,
                ),
            )

        logger.info(f"Sent {body} ok: {text}")
        return SendResult(success=True, response_text=text)

    def _failed(self, body: str, error: CodeStatsError) -> SendResult:
        logger.warning(f"Sending {body} failed: {error}")
        return SendResult(success=False, error=error)

    def close(self) -> None:
        self._client.close()
