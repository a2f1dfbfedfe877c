# models.py
import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ClientSource = Literal["manual", "file", "demo"]
FundStatus = Literal["idle", "searching", "completed", "error"]
Confidence = Literal["High", "Medium", "Low"]


def new_id() -> str:
    return str(uuid.uuid4())


class Client(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    # Hebrew, English, legal name, brand...
    name: str
    source: ClientSource = "manual"


class PortfolioCompany(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    url: Optional[str] = None


class Fund(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    status: FundStatus = "idle"
    portfolio: List[PortfolioCompany] = Field(default_factory=list)
    last_updated: Optional[datetime] = None
    # reason shown next to an "error" status
    error: Optional[str] = None


class MatchResult(BaseModel):
    """One claimed correspondence between a client and a portfolio company.

    Field aliases follow the camelCase keys of the model's JSON response.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    client_name: str = Field(alias="clientName")
    portfolio_company: str = Field(alias="portfolioCompany")
    fund_name: str = Field(default="", alias="fundName")
    confidence: Confidence
    reasoning: str
