"""Tradier adapter: API-key auth, account id resolved once and persisted"""

import logging
from typing import Optional

try:
    from broker_connector_base import (
        BrokerClient,
        Brokerage,
        CredentialStore,
        NoCredentialsError,
        PositionMap,
        SessionCache,
        TradeAction,
        TradierCredential,
    )
    from app_config import TradierConfig
    from .client import TradierClient
except ImportError as e:
    raise ImportError(
        f"Failed to import required packages: {e}. "
        "Ensure broker-connector-base and app-config packages are installed."
    )


class TradierBroker(BrokerClient):
    """Tradier brokerage adapter shared by all Tradier-bound portfolios"""

    brokerage = Brokerage.TRADIER

    def __init__(
        self,
        config: TradierConfig,
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

    async def _read_credentials(self, portfolio_id: int) -> TradierCredential:
        credential = await self.store.read_credential(portfolio_id, Brokerage.TRADIER)
        if credential is None or not credential.api_key:
            raise NoCredentialsError(
                portfolio_id,
                f"Tradier API key is required for portfolio {portfolio_id}. Connect Tradier first."
            )
        return credential

    async def check_credentials(self, portfolio_id: int) -> None:
        await self._read_credentials(portfolio_id)

    def create_client(self, api_key: str, sandbox: bool) -> TradierClient:
        return TradierClient(self.config, api_key=api_key, sandbox=sandbox, logger=self.logger)

    async def _client_and_account(self, portfolio_id: int):
        credential = await self._read_credentials(portfolio_id)
        client = self.create_client(credential.api_key, credential.sandbox)
        account_id = await self.resolve_account_id(portfolio_id)
        return client, account_id

    async def resolve_account_id(self, portfolio_id: int) -> str:
        """Return the stored account id, looking it up and saving it on first use"""
        async with self.cache.lock(portfolio_id):
            credential = await self._read_credentials(portfolio_id)
            if credential.account_id:
                return credential.account_id

            client = self.create_client(credential.api_key, credential.sandbox)
            account_id = await client.get_account_id()
            await self.store.write_credential(
                portfolio_id,
                credential.model_copy(update={"account_id": account_id})
            )
            self.logger.info(f"Resolved Tradier account {account_id} for portfolio {portfolio_id}")
            return account_id

    async def get_positions(self, portfolio_id: int) -> PositionMap:
        client, account_id = await self._client_and_account(portfolio_id)

        try:
            positions = await client.get_positions(account_id)
        except Exception as e:
            self.logger.error(f"Failed to get Tradier positions for portfolio {portfolio_id}: {e}")
            raise

        self.logger.info(f"Found {len(positions)} Tradier positions for portfolio {portfolio_id}")
        return {position.symbol: position for position in positions}

    async def _submit_order(
        self,
        portfolio_id: int,
        side: TradeAction,
        symbol: str,
        shares: int,
        price: float
    ) -> Optional[str]:
        client, account_id = await self._client_and_account(portfolio_id)

        try:
            return await client.place_order(
                account_id,
                side.lower(),
                symbol,
                shares,
                price=price,
                order_type=self.order_type
            )
        except Exception as e:
            self.logger.error(f"Failed to place Tradier {side} order for {symbol}: {e}")
            raise

    async def refresh_credentials(self, portfolio_id: int) -> bool:
        """API keys cannot be refreshed; a rejected key needs to be reconnected"""
        self.logger.warning(
            f"Tradier rejected the API key for portfolio {portfolio_id}; reconnect Tradier with a new key"
        )
        return False
