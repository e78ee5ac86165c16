"""Schwab trader API client with refreshable OAuth tokens"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
import aiohttp

try:
    from broker_connector_base import (
        BrokerAPIError,
        HttpResponse,
        RefreshTokenExpiredError,
        TradeAction,
        send_request,
    )
    from app_config import SchwabConfig
    from .exceptions import SchwabAuthError
    from .models import SchwabAccountNumber, SchwabTokens
except ImportError as e:
    raise ImportError(
        f"Failed to import required packages: {e}. "
        "Ensure broker-connector-base and app-config packages are installed."
    )

TokenSaver = Callable[[SchwabTokens], Awaitable[None]]


def build_order_body(side: TradeAction, symbol: str, shares: int, price: float, order_type: str) -> Dict[str, Any]:
    """Single-leg equity DAY order in Schwab's order schema"""
    body: Dict[str, Any] = {
        "orderType": order_type,
        "session": "NORMAL",
        "duration": "DAY",
        "orderStrategyType": "SINGLE",
        "orderLegCollection": [
            {
                "instruction": side,
                "quantity": shares,
                "instrument": {
                    "symbol": symbol,
                    "assetType": "EQUITY",
                },
            }
        ],
    }
    if order_type == "LIMIT":
        body["price"] = price
    return body


def parse_order_id(response: HttpResponse) -> Optional[str]:
    """Read the order id from the JSON body, else from the Location header"""
    try:
        data = response.json()
    except ValueError:
        data = {}

    order_id = data.get("orderId") if isinstance(data, dict) else None
    if order_id is not None:
        return str(order_id)

    location = response.headers.get("Location") or response.headers.get("location")
    if location:
        tail = location.rstrip("/").rsplit("/", 1)[-1]
        if tail.isdigit():
            return tail
    return None


class SchwabApiClient:
    """Thin client over the Schwab trader REST API for one portfolio.

    Every 401 is raised as SchwabAuthError(TOKEN_EXPIRED). ``refresh_tokens``
    exchanges the refresh token and hands the new pair to ``save_tokens``.
    """

    def __init__(
        self,
        config: SchwabConfig,
        tokens: SchwabTokens,
        save_tokens: TokenSaver,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config
        self.tokens = tokens
        self._save_tokens = save_tokens
        self.logger = logger or logging.getLogger(__name__)

    @property
    def access_token(self) -> str:
        return self.tokens.access_token

    async def _send(self, method: str, url: str, **kwargs) -> HttpResponse:
        return await send_request(
            method,
            url,
            timeout_seconds=self.config.request_timeout_seconds,
            **kwargs
        )

    async def _authorized_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None
    ) -> HttpResponse:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        response = await self._send(
            method,
            f"{self.config.api_base_url}{path}",
            headers=headers,
            params=params,
            json_body=json_body
        )

        if response.status == 401:
            raise SchwabAuthError(
                f"Schwab access token rejected: {response.text or 'unauthorized'}",
                body=response.text
            )
        if not response.ok:
            raise BrokerAPIError(
                f"Schwab API error {response.status}: {response.text}",
                status=response.status,
                body=response.text
            )
        return response

    async def get_account_numbers(self) -> List[SchwabAccountNumber]:
        """List linked accounts with their trading hashes"""
        response = await self._authorized_request("GET", "/trader/v1/accounts/accountNumbers")
        data = response.json()
        if not isinstance(data, list):
            raise BrokerAPIError("Schwab accountNumbers response must be a list")
        return [SchwabAccountNumber(**item) for item in data]

    async def get_account(self, account_hash: str, fields: Optional[str] = "positions") -> Dict[str, Any]:
        params = {"fields": fields} if fields else None
        response = await self._authorized_request(
            "GET", f"/trader/v1/accounts/{account_hash}", params=params
        )
        data = response.json()
        if not isinstance(data, dict):
            raise BrokerAPIError("Schwab account response must be a JSON object")
        return data

    async def place_order(self, account_hash: str, order: Dict[str, Any]) -> Optional[str]:
        """POST the order directly and return the broker order id"""
        response = await self._authorized_request(
            "POST", f"/trader/v1/accounts/{account_hash}/orders", json_body=order
        )
        return parse_order_id(response)

    async def refresh_tokens(self) -> SchwabTokens:
        """Exchange the refresh token for a new token pair and persist it.

        Schwab may omit the refresh token when it reuses the old one; the
        previous value is kept in that case.
        """
        refresh_token = self.tokens.refresh_token
        if not refresh_token:
            raise RefreshTokenExpiredError("No Schwab refresh token stored. Please re-authenticate through Schwab's OAuth flow.")

        response = await self._send(
            "POST",
            self.config.token_url,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/x-www-form-urlencoded",
            },
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            auth=aiohttp.BasicAuth(self.config.client_id or "", self.config.client_secret or "")
        )

        if response.status in (400, 401):
            self.logger.error(f"Schwab rejected the refresh token: {response.status} {response.text}")
            raise RefreshTokenExpiredError(status=response.status, body=response.text)
        if not response.ok:
            raise BrokerAPIError(
                f"Schwab token refresh failed: {response.status} {response.text}",
                status=response.status,
                body=response.text
            )

        data = response.json()
        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise BrokerAPIError("Schwab token refresh response did not include access_token")

        self.tokens = SchwabTokens(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or refresh_token
        )
        await self._save_tokens(self.tokens)
        self.logger.info("Schwab tokens refreshed successfully")
        return self.tokens
