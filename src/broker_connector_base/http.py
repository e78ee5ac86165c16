"""Minimal aiohttp request helper shared by the REST connectors"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import aiohttp
from .exceptions import BrokerConnectionError


@dataclass
class HttpResponse:
    """Fully-read HTTP response"""
    status: int
    text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Parse the body as JSON; an empty body parses as an empty object"""
        if not self.text or not self.text.strip():
            return {}
        return json.loads(self.text)


async def send_request(
    method: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout_seconds: float = 30.0,
    params: Optional[Dict[str, str]] = None,
    data: Any = None,
    json_body: Any = None,
    auth: Optional[aiohttp.BasicAuth] = None,
) -> HttpResponse:
    """Send one request and read the whole body.

    Transport failures are raised as BrokerConnectionError; HTTP error
    statuses are returned to the caller untouched.
    """
    try:
        async with aiohttp.ClientSession() as session:
            async with session.request(
                method,
                url,
                headers=headers,
                params=params,
                data=data,
                json=json_body,
                auth=auth,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds)
            ) as response:
                text = await response.text()
                return HttpResponse(
                    status=response.status,
                    text=text,
                    headers=dict(response.headers)
                )
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise BrokerConnectionError(f"{method} {url} failed: {str(e) or type(e).__name__}") from e
