# backend/argfolio/schemas/fixed_deposits.py
"""
Pydantic schemas for fixed deposits (plazos fijos).

Fixed deposits are supplied by an external collaborator, or derived from
the ledger's pf movements by
argfolio.services.valuation.fixed_deposits.derive_fixed_deposits.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from argfolio.models import FixedDepositStatus
from argfolio.schemas.validators import ensure_utc


class FixedDepositPosition(BaseModel):
    """One constituted fixed deposit."""

    id: str
    movement_id: str
    account_id: str
    bank: str | None = None
    alias: str | None = None
    pf_code: str | None = None

    principal_ars: Decimal = Field(..., ge=0)
    tna: Decimal = Field(default=Decimal("0"), ge=0)
    tea: Decimal = Field(default=Decimal("0"), ge=0)
    term_days: int = Field(..., ge=1)
    start_at: dt.datetime
    maturity_at: dt.datetime
    expected_interest_ars: Decimal = Decimal("0")
    expected_total_ars: Decimal
    initial_fx: Decimal | None = Field(default=None, description="USD rate at constitution")

    status: FixedDepositStatus = FixedDepositStatus.ACTIVE

    model_config = ConfigDict(frozen=True)

    @field_validator("start_at", "maturity_at")
    @classmethod
    def normalize_dates(cls, v: dt.datetime) -> dt.datetime:
        return ensure_utc(v)


class FixedDepositData(BaseModel):
    """Fixed deposits split by lifecycle state."""

    active: list[FixedDepositPosition] = Field(default_factory=list)
    matured: list[FixedDepositPosition] = Field(default_factory=list)
    closed: list[FixedDepositPosition] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def open_positions(self) -> list[FixedDepositPosition]:
        """Active and matured-but-not-redeemed deposits (still held)."""
        return [*self.active, *self.matured]
