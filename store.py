# store.py
import logging
import re
from datetime import datetime
from typing import Iterable, List, Optional

from importer import import_client_names
from models import Client, ClientSource, Fund, PortfolioCompany

logger = logging.getLogger(__name__)

DEMO_CLIENTS = [
    "Wiz",
    "monday.com",
    "רפאל מערכות",
    "Gong.io",
    "Bringg",
    "Papaya Global",
    "בנק הפועלים",
    "Melio",
    "StarkWare",
    "Armis Security",
]

EMPTY_PORTFOLIO = "No portfolio companies found"


def split_client_text(text: str) -> List[str]:
    """Split pasted text on newlines or commas, keeping non-empty trimmed names in order."""
    return [s.strip() for s in re.split(r"[\n,]+", text or "") if s.strip()]


# ---------- Clients ----------
class ClientStore:
    def __init__(self, clients: Optional[Iterable[Client]] = None):
        self.clients: List[Client] = list(clients or [])

    def __len__(self):
        return len(self.clients)

    def __iter__(self):
        return iter(self.clients)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.clients]

    @property
    def has_imported(self) -> bool:
        return any(c.source == "file" for c in self.clients)

    def add_names(self, names: Iterable[str], source: ClientSource) -> List[Client]:
        added = [Client(name=name, source=source) for name in names]
        self.clients.extend(added)
        logger.info("Added %d %s clients", len(added), source)
        return added

    def add_text(self, text: str) -> List[Client]:
        return self.add_names(split_client_text(text), "manual")

    def load_demo(self) -> List[Client]:
        return self.add_names(DEMO_CLIENTS, "demo")

    def import_file(self, uploaded_bytes: bytes, filename: str) -> List[Client]:
        """Append names read from a spreadsheet; raises ImportFailed and adds nothing on a bad file."""
        return self.add_names(import_client_names(uploaded_bytes, filename), "file")

    def clear(self):
        self.clients = []

    def clear_imported(self):
        self.clients = [c for c in self.clients if c.source != "file"]


# ---------- Funds ----------
class FundStore:
    def __init__(self, funds: Optional[Iterable[Fund]] = None):
        self.funds: List[Fund] = list(funds or [])

    def __len__(self):
        return len(self.funds)

    def __iter__(self):
        return iter(self.funds)

    def get(self, fund_id: str) -> Optional[Fund]:
        for fund in self.funds:
            if fund.id == fund_id:
                return fund
        return None

    def add(self, name: str) -> Fund:
        name = (name or "").strip()
        if not name:
            raise ValueError("Fund name must not be empty")
        fund = Fund(name=name, status="searching")
        self.funds.append(fund)
        return fund

    def _update(self, fund_id: str, **changes) -> Optional[Fund]:
        # by id, not index: the list may change while a search is in flight
        for i, fund in enumerate(self.funds):
            if fund.id == fund_id:
                self.funds[i] = fund.model_copy(update=changes)
                return self.funds[i]
        logger.warning("Fund %s no longer tracked, dropping update", fund_id)
        return None

    def complete(self, fund_id: str, portfolio: List[PortfolioCompany]) -> Optional[Fund]:
        portfolio = list(portfolio)
        return self._update(
            fund_id,
            status="completed" if portfolio else "error",
            portfolio=portfolio,
            last_updated=datetime.now(),
            error=None if portfolio else EMPTY_PORTFOLIO,
        )

    def fail(self, fund_id: str, reason: str) -> Optional[Fund]:
        return self._update(fund_id, status="error", error=reason)

    def rescan(self, fund_id: str) -> Optional[Fund]:
        return self._update(fund_id, status="searching", portfolio=[], error=None)

    def remove(self, fund_id: str):
        self.funds = [f for f in self.funds if f.id != fund_id]

    def with_portfolio(self) -> List[Fund]:
        return [f for f in self.funds if f.portfolio]

    @property
    def is_searching(self) -> bool:
        return any(f.status == "searching" for f in self.funds)


def refresh_portfolio(funds: FundStore, fund_id: str, service) -> Optional[Fund]:
    """Retrieve one fund's portfolio and record the outcome on the fund.

    Retrieval failures never escape: they become the fund's "error" status.
    """
    fund = funds.get(fund_id)
    if fund is None:
        return None
    try:
        portfolio = service.retrieve_portfolio(fund.name)
    except Exception as e:
        logger.error("Portfolio retrieval failed for %s: %s", fund.name, e)
        return funds.fail(fund_id, f"Could not retrieve portfolio data: {e}")
    return funds.complete(fund_id, portfolio)
