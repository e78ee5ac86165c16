from typing import List, Union
from pydantic import BaseModel, Field
from broker_connector_base import PlannedOrder, SkippedTrade

Decision = Union[PlannedOrder, SkippedTrade]


class ReconciliationPlan(BaseModel):
    """Ordered decisions for one batch: enter signals first, then exit signals"""
    decisions: List[Decision] = Field(default_factory=list)

    @property
    def orders(self) -> List[PlannedOrder]:
        return [d for d in self.decisions if isinstance(d, PlannedOrder)]

    @property
    def skipped(self) -> List[SkippedTrade]:
        return [d for d in self.decisions if isinstance(d, SkippedTrade)]
