"""Tradier REST client authenticated by API key"""

import logging
import math
from typing import Any, Dict, List, Optional

try:
    from broker_connector_base import (
        BrokerAPIError,
        BrokerAuthError,
        HttpResponse,
        OrderExecutionError,
        Position,
        send_request,
    )
    from app_config import TradierConfig
except ImportError as e:
    raise ImportError(
        f"Failed to import required packages: {e}. "
        "Ensure broker-connector-base and app-config packages are installed."
    )


def _as_list(value: Any) -> List[Any]:
    """Tradier returns a bare object for one element and a list for several"""
    if value is None or value == "null":
        return []
    return value if isinstance(value, list) else [value]


def parse_positions(data: Any) -> List[Position]:
    """Map a positions response, dropping non-positive or unparseable quantities"""
    if not isinstance(data, dict):
        return []
    positions = data.get("positions")
    if not isinstance(positions, dict):
        return []

    result = []
    for item in _as_list(positions.get("position")):
        if not isinstance(item, dict):
            continue
        symbol = str(item.get("symbol") or "").strip()
        try:
            quantity = float(item.get("quantity"))
        except (TypeError, ValueError):
            continue
        if not symbol or math.isnan(quantity) or quantity <= 0:
            continue
        result.append(Position(symbol=symbol, long_quantity=int(math.floor(quantity))))
    return result


class TradierClient:
    """Stateless Tradier client; every request carries the API key"""

    def __init__(
        self,
        config: TradierConfig,
        api_key: str,
        sandbox: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config
        self.api_key = api_key
        self.sandbox = sandbox
        self.base_url = config.base_url(sandbox)
        self.logger = logger or logging.getLogger(__name__)

    async def _send(self, method: str, url: str, **kwargs) -> HttpResponse:
        return await send_request(
            method,
            url,
            timeout_seconds=self.config.request_timeout_seconds,
            **kwargs
        )

    async def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, str]] = None,
        action: str = "request"
    ) -> HttpResponse:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if data is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        response = await self._send(method, f"{self.base_url}{path}", headers=headers, data=data)

        if response.status == 401:
            raise BrokerAuthError(
                f"Tradier {action} failed: 401 {response.text}",
                code="INVALID_API_KEY",
                body=response.text
            )
        if not response.ok:
            raise BrokerAPIError(
                f"Tradier {action} failed: {response.status} {response.text}",
                status=response.status,
                body=response.text
            )
        return response

    async def get_account_id(self) -> str:
        """Pick the first non-closed account of the profile, else the first account"""
        response = await self._request("GET", "/v1/user/profile", action="profile")
        data = response.json()
        profile = data.get("profile") if isinstance(data, dict) else None
        accounts = _as_list((profile or {}).get("account") or (profile or {}).get("accounts"))
        if not accounts:
            raise BrokerAPIError("Tradier profile returned no accounts")

        active = next(
            (a for a in accounts if str(a.get("status") or "").lower() != "closed"),
            None
        )
        account = active or accounts[0]
        account_number = str(account.get("account_number") or "").strip()
        if not account_number:
            raise BrokerAPIError("Tradier profile did not include account_number")
        return account_number

    async def get_positions(self, account_id: str) -> List[Position]:
        response = await self._request("GET", f"/v1/accounts/{account_id}/positions", action="positions")
        return parse_positions(response.json())

    async def place_order(
        self,
        account_id: str,
        side: str,
        symbol: str,
        quantity: int,
        price: Optional[float] = None,
        order_type: Optional[str] = None
    ) -> Optional[str]:
        """Submit a form-encoded equity DAY order and return the order id if present"""
        order_type = order_type or self.config.order_type
        form = {
            "class": "equity",
            "symbol": symbol.strip(),
            "side": side,
            "quantity": str(int(math.floor(quantity))),
            "type": order_type,
            "duration": "day",
        }
        if order_type == "limit" and price is not None and not math.isnan(price):
            form["price"] = f"{price:.2f}"

        response = await self._request(
            "POST", f"/v1/accounts/{account_id}/orders", data=form, action="place order"
        )
        data = response.json()
        if isinstance(data, dict) and data.get("errors"):
            errors = _as_list((data["errors"] or {}).get("error"))
            raise OrderExecutionError(f"Tradier rejected order: {'; '.join(str(e) for e in errors)}")

        order = data.get("order") if isinstance(data, dict) else None
        order_id = (order or {}).get("id")
        return str(order_id) if order_id is not None else None
