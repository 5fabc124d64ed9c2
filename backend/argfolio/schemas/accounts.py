# backend/argfolio/schemas/accounts.py
"""
Pydantic schemas for accounts and their per-account settings.

These schemas handle:
- Account identity and classification (WALLET, BANK, BROKER, EXCHANGE, OTHER)
- Cash-yield configuration (remunerated balances, "frascos")
- The sparse settings layer (display name, rubro and TNA overrides)
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from argfolio.models import AccountKind, Compounding, RubroId
from argfolio.schemas.validators import validate_currency, validate_identifier, validate_tna


class CashYieldConfig(BaseModel):
    """Interest paid on an account's idle cash balance."""

    enabled: bool = False
    tna: Decimal = Field(default=Decimal("0"), description="Nominal annual rate, in percent")
    currency: str = "ARS"
    compounding: Compounding = Compounding.DAILY
    last_accrued_date: dt.date | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("tna")
    @classmethod
    def check_tna(cls, v: Decimal) -> Decimal:
        return validate_tna(v)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return validate_currency(v)


class Account(BaseModel):
    """A wallet, bank, broker or exchange account."""

    id: str
    name: str = ""
    kind: AccountKind = AccountKind.OTHER
    default_currency: str = "ARS"
    cash_yield: CashYieldConfig | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("id")
    @classmethod
    def check_id(cls, v: str) -> str:
        return validate_identifier(v)

    @field_validator("default_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return validate_currency(v)

    @property
    def is_broker(self) -> bool:
        return self.kind is AccountKind.BROKER

    @property
    def is_exchange(self) -> bool:
        return self.kind is AccountKind.EXCHANGE

    @property
    def yield_enabled(self) -> bool:
        return self.cash_yield is not None and self.cash_yield.enabled


class AccountSettings(BaseModel):
    """User overrides for one account. Every field is optional."""

    display_name_override: str | None = None
    rubro_override: RubroId | None = Field(
        default=None,
        description="Force the account's cash into this rubro (wallets or frascos)",
    )
    tna_override: Decimal | None = Field(default=None, description="Replaces cash_yield.tna")

    model_config = ConfigDict(frozen=True)

    @field_validator("tna_override")
    @classmethod
    def check_tna(cls, v: Decimal | None) -> Decimal | None:
        return validate_tna(v)

    @field_validator("display_name_override")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()
