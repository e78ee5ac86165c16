from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from .models import Brokerage, BrokerCredential, Portfolio


class CredentialStore(ABC):
    """Per-portfolio brokerage credential storage.

    A portfolio is bound to at most one brokerage: writing a credential of one
    brokerage deletes any credential of the other for that portfolio.
    """

    @abstractmethod
    async def read_credential(self, portfolio_id: int, brokerage: Brokerage) -> Optional[BrokerCredential]:
        """Return the stored credential for this brokerage, or None"""
        pass

    @abstractmethod
    async def write_credential(self, portfolio_id: int, credential: BrokerCredential) -> None:
        """Store credential, replacing the portfolio's previous binding"""
        pass

    @abstractmethod
    async def get_brokerage(self, portfolio_id: int) -> Optional[Brokerage]:
        """Return the brokerage the portfolio is bound to, or None"""
        pass

    @abstractmethod
    async def delete_credentials(self, portfolio_id: int) -> None:
        """Remove the portfolio's brokerage binding"""
        pass

    @abstractmethod
    async def save_portfolio(self, portfolio: Portfolio) -> None:
        pass

    @abstractmethod
    async def list_portfolios(self) -> List[Portfolio]:
        pass


class InMemoryCredentialStore(CredentialStore):
    """Process-local store, used by tests and dry runs"""

    def __init__(self):
        self._portfolios: Dict[int, Portfolio] = {}
        self._credentials: Dict[int, BrokerCredential] = {}

    async def read_credential(self, portfolio_id: int, brokerage: Brokerage) -> Optional[BrokerCredential]:
        credential = self._credentials.get(portfolio_id)
        if credential is None or credential.brokerage != brokerage.value:
            return None
        return credential

    async def write_credential(self, portfolio_id: int, credential: BrokerCredential) -> None:
        # Single assignment replaces any binding to the other brokerage
        self._credentials[portfolio_id] = credential

    async def get_brokerage(self, portfolio_id: int) -> Optional[Brokerage]:
        credential = self._credentials.get(portfolio_id)
        return Brokerage(credential.brokerage) if credential else None

    async def delete_credentials(self, portfolio_id: int) -> None:
        self._credentials.pop(portfolio_id, None)

    async def save_portfolio(self, portfolio: Portfolio) -> None:
        self._portfolios[portfolio.id] = portfolio

    async def list_portfolios(self) -> List[Portfolio]:
        return sorted(self._portfolios.values(), key=lambda p: p.id)
