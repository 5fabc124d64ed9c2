# backend/argfolio/services/valuation/yield_accrual.py
"""
Yield math for remunerated cash balances ("frascos", cuentas remuneradas).

Conventions:
    TNA and TEA are expressed in percent (35 means 35%).
    daily_rate = TNA ÷ 100 ÷ 365
    TEA = ((1 + daily_rate) ^ 365 - 1) × 100

Accrual:
    generate_accrual_movements() produces one INTEREST movement per
    elapsed day, so a wallet's interest is visible in the ledger like any
    other credit. Daily compounding adds each day's interest to the
    balance that earns the next day's interest.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from argfolio.models import Compounding, MovementAssetClass, MovementType
from argfolio.schemas.accounts import Account
from argfolio.schemas.movements import Movement
from argfolio.services.constants import DAYS_PER_YEAR, HUNDRED, MONEY_QUANTUM, RATE_QUANTUM
from argfolio.services.valuation.types import AccrualResult, YieldMetrics
from argfolio.utils.date_utils import iter_days

logger = logging.getLogger(__name__)


def daily_rate(tna: Decimal) -> Decimal:
    """Daily rate (as a fraction) of a TNA in percent."""
    return tna / HUNDRED / DAYS_PER_YEAR


def compute_tea(tna: Decimal) -> Decimal:
    """
    Effective annual rate of a TNA with daily compounding.

    Example:
        >>> compute_tea(Decimal("36.5"))
        Decimal('44.03')
    """
    if tna <= 0:
        return Decimal("0.00")
    tea = ((1 + daily_rate(tna)) ** DAYS_PER_YEAR - 1) * HUNDRED
    return tea.quantize(RATE_QUANTUM)


def projected_interest(balance: Decimal, tna: Decimal, days: int) -> Decimal:
    """Interest earned by balance over days, compounding daily."""
    if balance <= 0 or tna <= 0 or days <= 0:
        return Decimal("0.00")
    growth = (1 + daily_rate(tna)) ** days - 1
    return (balance * growth).quantize(MONEY_QUANTUM)


def compute_yield_metrics(balance_ars: Decimal, tna: Decimal) -> YieldMetrics:
    """
    Forward-looking yield of a balance.

    Args:
        balance_ars: Current balance earning interest
        tna: Nominal annual rate, percent

    Returns:
        YieldMetrics with next-day, 30-day and 1-year projections
    """
    return YieldMetrics(
        tea=compute_tea(tna),
        interest_tomorrow=projected_interest(balance_ars, tna, 1),
        projected_30d=projected_interest(balance_ars, tna, 30),
        projected_1y=projected_interest(balance_ars, tna, DAYS_PER_YEAR),
    )


def generate_accrual_movements(
        account: Account,
        balance_ars: Decimal,
        today: date,
) -> AccrualResult:
    """
    Generate the INTEREST movements owed since the last accrual.

    Accrues every day from last_accrued_date + 1 up to yesterday (today's
    interest is credited tomorrow). An account that has never accrued
    starts with yesterday.

    Args:
        account: Account with a cash_yield configuration
        balance_ars: Balance the interest is computed on
        today: Current date

    Returns:
        AccrualResult with the new movements and the new last_accrued_date
    """
    config = account.cash_yield
    last_accrued = config.last_accrued_date if config is not None else None

    if config is None or not config.enabled or config.tna <= 0 or balance_ars <= 0:
        return AccrualResult(movements=[], last_accrued_date=last_accrued)

    yesterday = today - timedelta(days=1)
    first_day = last_accrued + timedelta(days=1) if last_accrued is not None else yesterday
    days = iter_days(first_day, yesterday)
    if not days:
        return AccrualResult(movements=[], last_accrued_date=last_accrued)

    rate = daily_rate(config.tna)
    balance = balance_ars
    movements: list[Movement] = []

    for day in days:
        interest = (balance * rate).quantize(MONEY_QUANTUM)
        if interest <= 0:
            continue
        movements.append(Movement(
            id=f"accrual-{account.id}-{day.isoformat()}",
            timestamp=datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc),
            type=MovementType.INTEREST,
            asset_class=MovementAssetClass.WALLET,
            account_id=account.id,
            quantity=interest,
            unit_price=Decimal("1"),
            trade_currency="ARS",
            total_amount=interest,
            net_amount=interest,
            total_ars=interest,
            auto_generated=True,
            notes=f"Intereses TNA {config.tna}%",
        ))
        if config.compounding is Compounding.DAILY:
            balance += interest

    logger.info(
        f"Accrued {len(movements)} interest movements for account {account.id} "
        f"({days[0]} to {days[-1]})"
    )
    return AccrualResult(movements=movements, last_accrued_date=days[-1])
