"""HTTP client for the shared override, used by remote player sessions"""
import os
import json
import logging
from typing import Optional

from tornado.httpclient import AsyncHTTPClient, HTTPClientError, HTTPRequest

from slot_engine.application.ports.override_state_port import OverrideStatePort
from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState

logger = logging.getLogger(__name__)


class HttpOverrideClient(OverrideStatePort):
    """REST implementation of the override state port"""

    def __init__(self, base_url: str = None, http_client: AsyncHTTPClient = None):
        self.base_url = (base_url or os.environ.get(
            'SLOT_ENGINE_URL', 'http://localhost:8082'
        )).rstrip('/')
        self.http_client = http_client or AsyncHTTPClient()
        self.timeout = 5
        self._last_known = OverrideState(OutcomeOverride.RNG)

    async def get(self) -> OverrideState:
        """GET /game-settings"""
        data = await self._request("GET", "/game-settings")
        if data is None:
            return self._last_known
        try:
            self._last_known = OverrideState.from_dict(data)
        except ValueError as e:
            logger.error(f"Invalid game settings response: {e}")
        return self._last_known

    async def try_set(self, outcome_override: OutcomeOverride) -> Optional[OverrideState]:
        """POST /admin-settings"""
        data = await self._request("POST", "/admin-settings", {"outcomeOverride": outcome_override.value})
        if data is None:
            return None
        try:
            self._last_known = OverrideState.from_dict(data)
        except ValueError as e:
            logger.error(f"Invalid admin settings response: {e}")
            return None
        return self._last_known

    async def try_consume_and_reset(self) -> Optional[OutcomeOverride]:
        """POST /game-settings/consume"""
        data = await self._request("POST", "/game-settings/consume", {})
        if data is None:
            return None
        try:
            return OutcomeOverride.parse(data.get("consumed"))
        except ValueError as e:
            logger.error(f"Invalid consume response: {e}")
            return None

    async def _request(self, method: str, path: str, body: dict = None) -> Optional[dict]:
        request = HTTPRequest(
            f"{self.base_url}{path}",
            method=method,
            headers={"Content-Type": "application/json"},
            body=json.dumps(body) if body is not None else None,
            request_timeout=self.timeout
        )
        try:
            response = await self.http_client.fetch(request)
            return json.loads(response.body)
        except HTTPClientError as e:
            body_text = e.response.body[:200] if e.response is not None and e.response.body else b''
            logger.warning(f"{method} {path} failed: {e.code} - {body_text!r}")
            return None
        except Exception as e:
            logger.error(f"{method} {path} failed: {e}")
            return None
