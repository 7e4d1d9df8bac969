"""Synchronous client for the remote agent sessions API."""

import json
import logging
from typing import Optional

import requests

from ..core.config import JULES_SESSIONS_URL
from ..core.errors import ConfigurationError, RemoteDispatchFailure
from .models import DispatchResult, SessionRequest

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Goog-Api-Key"


class RemoteDispatchClient:
    """Creates one agent session per call. No retries: a failure ends the invocation."""

    def __init__(
        self,
        api_key: Optional[str],
        endpoint: str = JULES_SESSIONS_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "Remote dispatch requires an API key (PRODMILL_JULES_API_KEY)"
            )
        self._api_key = api_key.strip()
        self.endpoint = endpoint
        self.timeout = timeout
        # Injected sessions are owned by the caller; otherwise one bare request per dispatch
        self._session = session

    def dispatch(self, request: SessionRequest) -> DispatchResult:
        """
        POST the session request.

        Returns:
            DispatchResult with the parsed JSON body ({} for an empty body)

        Raises:
            RemoteDispatchFailure: On a non-2xx status or a network-level error
        """
        data = json.dumps(request.to_payload()).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(data)),
            API_KEY_HEADER: self._api_key,
        }

        logger.info(f"Creating agent session '{request.title}' at {self.endpoint}")
        try:
            post = self._session.post if self._session is not None else requests.post
            response = post(
                self.endpoint, data=data, headers=headers, timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise RemoteDispatchFailure(
                f"Remote dispatch timed out after {self.timeout}s: {e}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise RemoteDispatchFailure(f"Remote dispatch failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise RemoteDispatchFailure(
                "Remote dispatch rejected",
                status_code=response.status_code,
                body=response.text,
            )

        result = DispatchResult(status_code=response.status_code, body=self._parse_body(response))
        logger.info(f"Agent session created: {result.describe()}")
        return result

    @staticmethod
    def _parse_body(response: requests.Response) -> dict:
        text = response.text
        if not text or not text.strip():
            return {}
        try:
            body = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(
                f"Session created (HTTP {response.status_code}) but the response "
                f"was not JSON: {text[:200]!r}"
            )
            return {"raw": text}
        return body if isinstance(body, dict) else {"data": body}
