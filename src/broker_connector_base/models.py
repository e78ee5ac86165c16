from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

TradeAction = Literal['BUY', 'SELL']


class Brokerage(str, Enum):
    """Brokerages a portfolio can be bound to"""
    SCHWAB = "schwab"
    TRADIER = "tradier"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Portfolio(BaseModel):
    """Portfolio owning at most one brokerage credential"""
    id: int
    name: str
    created_at: datetime = Field(default_factory=datetime.now)


# Credential models
class SchwabCredential(BaseModel):
    """OAuth tokens issued by Schwab for one portfolio"""
    model_config = ConfigDict(frozen=True)

    brokerage: Literal['schwab'] = 'schwab'
    access_token: str
    refresh_token: str
    redirect_uri: Optional[str] = None
    account_number: Optional[str] = None  # Human-readable; trading calls use the account hash


class TradierCredential(BaseModel):
    """Tradier API key; the key is never edited, only replaced with a new credential"""
    model_config = ConfigDict(frozen=True)

    brokerage: Literal['tradier'] = 'tradier'
    api_key: str
    account_id: Optional[str] = None
    sandbox: bool = False


BrokerCredential = Annotated[
    Union[SchwabCredential, TradierCredential],
    Field(discriminator='brokerage'),
]


# Market data models
class Position(BaseModel):
    """Live position; valuation fields are informational only"""
    symbol: str
    long_quantity: int = Field(default=0, ge=0)
    short_quantity: int = 0
    market_value: Optional[float] = None
    day_pl: Optional[float] = None
    day_pl_percent: Optional[float] = None
    open_pl: Optional[float] = None


# Signal models
class TradeSignal(BaseModel):
    """Desired trade produced upstream"""
    model_config = ConfigDict(frozen=True)

    symbol: str
    action: TradeAction
    shares: int = 0
    price: float = 0.0


class ProcessedSignals(BaseModel):
    """Signals for one trading day, grouped by intent"""
    date: Optional[str] = None
    enter_signals: List[TradeSignal] = Field(default_factory=list)
    exit_signals: List[TradeSignal] = Field(default_factory=list)


# Reconciliation decisions
class PlannedOrder(BaseModel):
    """Order the reconciler decided to place"""
    symbol: str
    action: TradeAction
    shares: int
    price: float


class SkippedTrade(BaseModel):
    """Signal the reconciler decided not to act on"""
    symbol: str
    reason: str


# Execution result models
class TradeExecutionResult(BaseModel):
    """Outcome of one order attempt"""
    symbol: str
    action: TradeAction
    shares: int
    price: float
    success: bool
    order_id: Optional[str] = None
    error: Optional[str] = None


class TradeExecutionSummary(BaseModel):
    """Transcript of one execution batch"""
    successful: List[TradeExecutionResult] = Field(default_factory=list)
    failed: List[TradeExecutionResult] = Field(default_factory=list)
    skipped: List[SkippedTrade] = Field(default_factory=list)


class ConnectionStatus(BaseModel):
    """Result of a read-only connection check"""
    ok: bool
    message: str
    positions_count: Optional[int] = None


PositionMap = Dict[str, Position]
