"""
Pure transforms on quota ledger entries.

Nothing here performs I/O. Quota counters (``available``/``reset_at``) are
written once by ``create_entry``; every other transform copies both limit
blocks as they are.
"""

import json
import math
from typing import Any, List, Optional

from pydantic import ValidationError

from packages.ledger.models.domain.ledger_entry import (
    DurationBlock,
    LedgerEntryStatus,
    LedgerGrant,
    LimitBlock,
    QuotaLedgerEntry,
)

QUOTA_UNIT_SCALE = 500_000


def units_to_quota(units: float) -> int:
    return math.floor(units * QUOTA_UNIT_SCALE)


def create_entry(grant: LedgerGrant, owner: int, now: int) -> QuotaLedgerEntry:
    quota_5h = units_to_quota(grant.limit_5h_units)
    quota_7d = units_to_quota(grant.limit_7d_units)
    return QuotaLedgerEntry(
        plan_name=grant.plan_name,
        plan_id=grant.plan_id,
        subscription_id=grant.subscription_id,
        limit_5h=LimitBlock(total=quota_5h, available=quota_5h, reset_at=now),
        limit_7d=LimitBlock(total=quota_7d, available=quota_7d, reset_at=now),
        duration=DurationBlock(
            start_at=now, end_at=grant.end_at, auto_renew_enabled=grant.auto_renew
        ),
        owner=owner,
        status=LedgerEntryStatus.DEPLOYED.value,
    )


def _with_owner(
    entry: QuotaLedgerEntry, now: int, owner: int, end_at: int, auto_renew: bool
) -> QuotaLedgerEntry:
    duration = entry.duration.model_copy(
        update={"start_at": now, "end_at": end_at, "auto_renew_enabled": auto_renew}
    )
    return entry.model_copy(
        update={
            "owner": owner,
            "status": LedgerEntryStatus.DEPLOYED.value,
            "duration": duration,
            "limit_5h": entry.limit_5h.model_copy(),
            "limit_7d": entry.limit_7d.model_copy(),
        }
    )


def redeploy_without_reset(
    entry: QuotaLedgerEntry, now: int, owner: int, end_at: int, auto_renew: bool
) -> QuotaLedgerEntry:
    return _with_owner(entry, now, owner, end_at, auto_renew)


def deactivate_without_reset(entry: QuotaLedgerEntry) -> QuotaLedgerEntry:
    return entry.model_copy(update={"status": LedgerEntryStatus.DEACTIVATED.value})


def transfer_without_reset(
    entry: QuotaLedgerEntry, now: int, owner: int, end_at: int, auto_renew: bool
) -> QuotaLedgerEntry:
    # Same field changes as a redeploy, only the owner is a different user
    return _with_owner(entry, now, owner, end_at, auto_renew)


def normalize_ledger(raw: Any) -> List[Any]:
    """Decode a stored ledger column. Anything that is not a JSON array becomes []."""
    if raw is None:
        return []
    if isinstance(raw, list):
        return list(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return []
    if not isinstance(raw, str):
        return []

    text = raw.strip()
    if not text or text == "null":
        return []
    try:
        decoded = json.loads(text)
    except ValueError:
        return []
    return decoded if isinstance(decoded, list) else []


def serialize_ledger(entries: List[Any]) -> str:
    return json.dumps(entries, separators=(",", ":"), ensure_ascii=False)


def find_entry_index(entries: List[Any], subscription_id: str) -> int:
    for index, item in enumerate(entries):
        if isinstance(item, dict) and item.get("subscription_id") == subscription_id:
            return index
    return -1


def has_deployed_entry(entries: List[Any]) -> bool:
    return any(
        isinstance(item, dict) and item.get("status") == LedgerEntryStatus.DEPLOYED
        for item in entries
    )


def parse_entry(raw: Any) -> Optional[QuotaLedgerEntry]:
    """Validate a stored entry; None if it does not have the expected shape."""
    try:
        return QuotaLedgerEntry.model_validate(raw)
    except ValidationError:
        return None
