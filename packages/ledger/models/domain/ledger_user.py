from typing import Any, List, Literal, Optional
from pydantic import BaseModel

from packages.ledger.models.domain.ledger_entry import QuotaLedgerEntry


class LedgerUser(BaseModel):
    """External user with its decoded ledger array."""

    id: int
    username: str
    group: Optional[str] = None
    entries: List[Any] = []


class LedgerPlacement(BaseModel):
    """Where an entry ended up after a ledger mutation."""

    ok: Literal[True] = True
    ledger_user_id: int
    ledger_username: str
    entry: QuotaLedgerEntry
