"""
Domain models for quota ledger entries.

A ledger entry lives inside the external user's ``subscription_data`` JSON
array. Field names on the wire are fixed by the external system, including the
``5h_limit``/``7d_limit`` keys that are not valid Python identifiers.
"""

from enum import Enum
from typing import Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

Number = Union[int, float]


class LedgerEntryStatus(str, Enum):
    """Status of an entry inside the external ledger."""

    DEPLOYED = "deployed"
    DEACTIVATED = "deactivated"
    DISABLED = "disabled"
    EXPIRED = "expired"


class LedgerGroup(str, Enum):
    """Group label of the external user row."""

    DEFAULT = "default"
    SUBSCRIPTION = "subscription"


class LimitBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    total: Number
    available: Number
    reset_at: Number


class DurationBlock(BaseModel):
    model_config = ConfigDict(extra="allow")

    start_at: Number
    end_at: Number
    auto_renew_enabled: bool


class QuotaLedgerEntry(BaseModel):
    """One subscription's quota record. Unknown keys are carried through untouched."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    plan_name: str
    plan_id: str
    subscription_id: str
    limit_5h: LimitBlock = Field(alias="5h_limit")
    limit_7d: LimitBlock = Field(alias="7d_limit")
    duration: DurationBlock
    owner: int
    status: str

    @field_validator("status", mode="before")
    @classmethod
    def convert_status_to_string(cls, v):
        """Convert LedgerEntryStatus enum to string value."""
        if isinstance(v, LedgerEntryStatus):
            return v.value
        return v

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class LedgerGrant(BaseModel):
    """What a first deploy places into the ledger."""

    subscription_id: str
    plan_id: str
    plan_name: str
    limit_5h_units: float
    limit_7d_units: float
    end_at: int
    auto_renew: bool = False
