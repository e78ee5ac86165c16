from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SchwabTokens(BaseModel):
    """Token pair held by a live Schwab client"""
    access_token: str
    refresh_token: Optional[str] = None


class SchwabAccountNumber(BaseModel):
    """Entry of the accountNumbers lookup: plain number and its trading hash"""
    model_config = ConfigDict(populate_by_name=True)

    account_number: str = Field(alias="accountNumber")
    hash_value: str = Field(alias="hashValue")
