"""Schwab adapter: cached OAuth clients and account-hash resolution per portfolio"""

import logging
import math
from typing import Any, Optional

try:
    from broker_connector_base import (
        BrokerAPIError,
        BrokerClient,
        Brokerage,
        ConfigurationError,
        CredentialStore,
        NoCredentialsError,
        Position,
        PositionMap,
        SchwabCredential,
        SessionCache,
        TradeAction,
    )
    from app_config import SchwabConfig
    from .client import SchwabApiClient, build_order_body
    from .models import SchwabTokens
except ImportError as e:
    raise ImportError(
        f"Failed to import required packages: {e}. "
        "Ensure broker-connector-base and app-config packages are installed."
    )


def _whole_shares(value: Any) -> int:
    try:
        quantity = float(value or 0)
    except (TypeError, ValueError):
        return 0
    if math.isnan(quantity) or quantity <= 0:
        return 0
    return int(math.floor(quantity))


class SchwabBroker(BrokerClient):
    """Schwab brokerage adapter shared by all Schwab-bound portfolios"""

    brokerage = Brokerage.SCHWAB

    def __init__(
        self,
        config: SchwabConfig,
        store: CredentialStore,
        cache: SessionCache,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(
            store=store,
            cache=cache,
            trading_enabled=config.trading_enabled,
            order_type=config.order_type,
            logger=logger
        )
        self.config = config

    def _require_app_credentials(self):
        if not self.config.client_id or not self.config.client_secret:
            raise ConfigurationError("SCHWAB_CLIENT_ID and SCHWAB_CLIENT_SECRET are required")

    async def _read_credentials(self, portfolio_id: int) -> SchwabCredential:
        credential = await self.store.read_credential(portfolio_id, Brokerage.SCHWAB)
        if credential is None or not credential.access_token or not credential.refresh_token:
            raise NoCredentialsError(
                portfolio_id,
                f"Schwab credentials are required for portfolio {portfolio_id}. "
                "Complete the Schwab OAuth login first."
            )
        return credential

    async def check_credentials(self, portfolio_id: int) -> None:
        self._require_app_credentials()
        await self._read_credentials(portfolio_id)

    async def _persist_tokens(self, portfolio_id: int, tokens: SchwabTokens):
        """Token-save callback: rewrite tokens, keep redirect URI and account number"""
        current = await self.store.read_credential(portfolio_id, Brokerage.SCHWAB)
        refresh_token = tokens.refresh_token or (current.refresh_token if current else None)
        if not refresh_token:
            raise NoCredentialsError(portfolio_id, f"No Schwab refresh token to persist for portfolio {portfolio_id}")

        updated = SchwabCredential(
            access_token=tokens.access_token,
            refresh_token=refresh_token,
            redirect_uri=current.redirect_uri if current else None,
            account_number=current.account_number if current else None
        )
        await self.store.write_credential(portfolio_id, updated)
        self.logger.debug(f"Persisted refreshed Schwab tokens for portfolio {portfolio_id}")

    def _create_client(self, portfolio_id: int, credential: SchwabCredential) -> SchwabApiClient:
        async def save_tokens(tokens: SchwabTokens):
            await self._persist_tokens(portfolio_id, tokens)

        return SchwabApiClient(
            config=self.config,
            tokens=SchwabTokens(
                access_token=credential.access_token,
                refresh_token=credential.refresh_token
            ),
            save_tokens=save_tokens,
            logger=self.logger
        )

    async def _get_client_locked(self, portfolio_id: int) -> SchwabApiClient:
        client = self.cache.get_client(portfolio_id)
        if client is not None:
            return client

        self._require_app_credentials()
        credential = await self._read_credentials(portfolio_id)
        client = self._create_client(portfolio_id, credential)
        self.cache.set_client(portfolio_id, client)
        self.logger.info(f"Initialized Schwab client for portfolio {portfolio_id}")
        return client

    async def get_client(self, portfolio_id: int) -> SchwabApiClient:
        """Return the cached client for the portfolio, creating it on first use"""
        async with self.cache.lock(portfolio_id):
            return await self._get_client_locked(portfolio_id)

    async def resolve_account_id(self, portfolio_id: int) -> str:
        """Resolve and cache the account hash used on trading endpoints"""
        async with self.cache.lock(portfolio_id):
            account_hash = self.cache.get_account_id(portfolio_id)
            if account_hash:
                return account_hash

            client = await self._get_client_locked(portfolio_id)
            credential = await self._read_credentials(portfolio_id)
            accounts = await client.get_account_numbers()
            if not accounts:
                raise BrokerAPIError("Schwab returned no linked accounts")

            if credential.account_number:
                match = next((a for a in accounts if a.account_number == credential.account_number), None)
                if match is None:
                    linked = ", ".join(a.account_number for a in accounts)
                    raise ConfigurationError(
                        f"Schwab account {credential.account_number} stored for portfolio {portfolio_id} "
                        f"is not linked to its tokens (linked accounts: {linked}). "
                        "Complete the Schwab OAuth login for that account."
                    )
            else:
                match = accounts[0]
                await self.store.write_credential(
                    portfolio_id,
                    credential.model_copy(update={"account_number": match.account_number})
                )
                self.logger.info(f"Saved Schwab account number for portfolio {portfolio_id}")

            self.cache.set_account_id(portfolio_id, match.hash_value)
            return match.hash_value

    async def get_positions(self, portfolio_id: int) -> PositionMap:
        account_hash = await self.resolve_account_id(portfolio_id)
        client = await self.get_client(portfolio_id)

        try:
            account = await client.get_account(account_hash, fields="positions")
        except Exception as e:
            self.logger.error(f"Failed to get Schwab positions for portfolio {portfolio_id}: {e}")
            raise

        securities_account = account.get("securitiesAccount") or {}
        positions: PositionMap = {}
        for item in securities_account.get("positions") or []:
            symbol = (item.get("instrument") or {}).get("symbol")
            if not symbol:
                continue
            positions[symbol] = Position(
                symbol=symbol,
                long_quantity=_whole_shares(item.get("longQuantity")),
                short_quantity=_whole_shares(item.get("shortQuantity")),
                market_value=item.get("marketValue"),
                day_pl=item.get("currentDayProfitLoss"),
                day_pl_percent=item.get("currentDayProfitLossPercentage"),
                open_pl=item.get("longOpenProfitLoss")
            )

        self.logger.info(f"Found {len(positions)} Schwab positions for portfolio {portfolio_id}")
        return positions

    async def _submit_order(
        self,
        portfolio_id: int,
        side: TradeAction,
        symbol: str,
        shares: int,
        price: float
    ) -> Optional[str]:
        account_hash = await self.resolve_account_id(portfolio_id)
        client = await self.get_client(portfolio_id)
        order = build_order_body(side, symbol, shares, price, self.order_type)

        try:
            return await client.place_order(account_hash, order)
        except Exception as e:
            self.logger.error(f"Failed to place Schwab {side} order for {symbol}: {e}")
            raise

    async def refresh_credentials(self, portfolio_id: int) -> bool:
        """Exchange the stored refresh token, persist the result and evict the cache.

        RefreshTokenExpiredError propagates: the portfolio needs a new OAuth login.
        """
        async with self.cache.lock(portfolio_id):
            self._require_app_credentials()
            credential = await self._read_credentials(portfolio_id)
            client = self._create_client(portfolio_id, credential)
            await client.refresh_tokens()
            self.cache.invalidate(portfolio_id)

        self.logger.info(f"Refreshed Schwab tokens for portfolio {portfolio_id}")
        return True
