# backend/argfolio/utils/fx_conversion.py
"""
ARS/USD Conversion Utilities

Argentine quotes are always expressed as "1 USD = X ARS", for every family
(Oficial, MEP, CCL, Cripto). Which side of the quote applies depends on the
direction of the conversion:

1. USD -> ARS ("selling USD"):
   The holder would sell dollars, so the SELL/ask quote applies.
   Usage: MULTIPLY the USD amount by the rate.

2. ARS -> USD ("buying USD"):
   The holder would buy dollars, so the BUY/bid quote applies.
   Usage: DIVIDE the ARS amount by the rate.

Side selection lives in FxResolver; these helpers only do the arithmetic
and refuse to divide or multiply by a non-positive rate.
"""

from decimal import Decimal

from argfolio.services.exceptions import FXConversionError


def usd_to_ars(amount_usd: Decimal, rate: Decimal) -> Decimal:
    """
    Convert a USD amount into ARS.

    Example:
        - Amount: 100 USD
        - Rate: 900 (Oficial sell)
        - Result: 100 × 900 = 90000 ARS

    Raises:
        FXConversionError: If rate is zero or negative
    """
    if rate <= 0:
        raise FXConversionError(f"Rate must be positive, got {rate}")
    return amount_usd * rate


def ars_to_usd(amount_ars: Decimal, rate: Decimal) -> Decimal:
    """
    Convert an ARS amount into USD.

    Example:
        - Amount: 89000 ARS
        - Rate: 890 (Oficial buy)
        - Result: 89000 ÷ 890 = 100 USD

    Raises:
        FXConversionError: If rate is zero or negative
    """
    if rate <= 0:
        raise FXConversionError(f"Rate must be positive, got {rate}")
    return amount_ars / rate
