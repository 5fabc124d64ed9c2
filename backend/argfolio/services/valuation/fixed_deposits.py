# backend/argfolio/services/valuation/fixed_deposits.py
"""
Fixed-deposit (plazo fijo) derivation from the ledger.

Constitutions are pf movements of type BUY or DEPOSIT; redemptions are
pf movements of type SELL or WITHDRAW.

Matching redemptions to constitutions:
    1. A redemption carrying pf_id closes exactly that constitution.
    2. Each remaining redemption closes at most ONE remaining
       constitution: the earliest-maturing one from the same bank (when
       both record a bank) that started on or before the redemption.

Terms (simple interest, 365-day year):
    interest = principal × TNA/100 × term/365
    TEA = ((1 + TNA/100 × term/365) ^ (365/term) - 1) × 100

Status:
    closed  - matched by a redemption
    matured - as_of date is on or after the maturity date
    active  - otherwise
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from argfolio.config import Settings, settings as default_settings
from argfolio.models import FixedDepositStatus, MovementAssetClass, MovementType
from argfolio.schemas.fixed_deposits import FixedDepositData, FixedDepositPosition
from argfolio.schemas.movements import Movement
from argfolio.services.constants import DAYS_PER_YEAR, HUNDRED, MONEY_QUANTUM, RATE_QUANTUM

logger = logging.getLogger(__name__)

CONSTITUTION_TYPES = frozenset({MovementType.BUY, MovementType.DEPOSIT})
REDEMPTION_TYPES = frozenset({MovementType.SELL, MovementType.WITHDRAW})


def compute_fixed_deposit_tea(tna: Decimal, term_days: int) -> Decimal:
    """Effective annual rate of a fixed deposit renewed at the same TNA."""
    if tna <= 0 or term_days <= 0:
        return Decimal("0.00")
    period_rate = tna / HUNDRED * term_days / DAYS_PER_YEAR
    tea = ((1 + period_rate) ** (Decimal(DAYS_PER_YEAR) / term_days) - 1) * HUNDRED
    return tea.quantize(RATE_QUANTUM)


def derive_fixed_deposits(
        movements: Iterable[Movement],
        as_of: datetime,
        settings: Settings | None = None,
) -> FixedDepositData:
    """
    Build fixed-deposit positions from pf movements.

    Args:
        movements: Ledger movements (non-pf movements are ignored)
        as_of: Valuation timestamp deciding active vs. matured
        settings: Engine settings (default term)

    Returns:
        FixedDepositData with active, matured and closed positions
    """
    settings = settings or default_settings
    pf_movements = sorted(
        (m for m in movements if m.asset_class is MovementAssetClass.PF),
        key=lambda m: m.timestamp,
    )
    constitutions = [m for m in pf_movements if m.type in CONSTITUTION_TYPES]
    redemptions = [m for m in pf_movements if m.type in REDEMPTION_TYPES]

    positions = {
        m.id: _build_position(m, settings.default_fixed_deposit_term_days)
        for m in constitutions
    }
    closed_ids = _match_redemptions(positions, redemptions)

    active: list[FixedDepositPosition] = []
    matured: list[FixedDepositPosition] = []
    closed: list[FixedDepositPosition] = []

    for position_id, position in positions.items():
        if position_id in closed_ids:
            closed.append(position.model_copy(update={"status": FixedDepositStatus.CLOSED}))
        elif as_of.date() >= position.maturity_at.date():
            matured.append(position.model_copy(update={"status": FixedDepositStatus.MATURED}))
        else:
            active.append(position)

    logger.debug(
        f"Derived fixed deposits: {len(active)} active, {len(matured)} matured, "
        f"{len(closed)} closed"
    )
    return FixedDepositData(active=active, matured=matured, closed=closed)


def _build_position(movement: Movement, default_term_days: int) -> FixedDepositPosition:
    term_days = movement.term_days or default_term_days
    principal = movement.principal_ars or movement.quantity or Decimal("0")
    tna = movement.tna or Decimal("0")
    interest = (principal * tna / HUNDRED * term_days / DAYS_PER_YEAR).quantize(MONEY_QUANTUM)

    return FixedDepositPosition(
        id=movement.id,
        movement_id=movement.id,
        account_id=movement.account_id,
        bank=movement.bank,
        alias=movement.alias,
        pf_code=movement.pf_code,
        principal_ars=principal,
        tna=tna,
        tea=compute_fixed_deposit_tea(tna, term_days),
        term_days=term_days,
        start_at=movement.timestamp,
        maturity_at=movement.timestamp + timedelta(days=term_days),
        expected_interest_ars=interest,
        expected_total_ars=principal + interest,
        initial_fx=movement.effective_fx_rate,
        status=FixedDepositStatus.ACTIVE,
    )


def _match_redemptions(
        positions: dict[str, FixedDepositPosition],
        redemptions: list[Movement],
) -> set[str]:
    """Return the ids of constitutions closed by a redemption."""
    closed: set[str] = set()
    unlinked: list[Movement] = []

    for redemption in redemptions:
        if redemption.pf_id is not None and redemption.pf_id in positions:
            closed.add(redemption.pf_id)
        elif redemption.pf_id is not None:
            logger.warning(
                f"Redemption {redemption.id} references unknown fixed deposit {redemption.pf_id}"
            )
        else:
            unlinked.append(redemption)

    for redemption in unlinked:
        candidates = [
            position for position in positions.values()
            if position.id not in closed
            and position.start_at <= redemption.timestamp
            and _same_bank(position.bank, redemption.bank)
        ]
        if not candidates:
            logger.debug(f"Redemption {redemption.id} matches no open fixed deposit")
            continue
        match = min(candidates, key=lambda p: (p.maturity_at, p.id))
        closed.add(match.id)

    return closed


def _same_bank(position_bank: str | None, redemption_bank: str | None) -> bool:
    if position_bank and redemption_bank:
        return position_bank.strip().lower() == redemption_bank.strip().lower()
    return True
