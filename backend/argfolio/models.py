# backend/argfolio/models.py
import enum


# Enums keep ledger and classification values consistent across the engine
class MovementType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    INTEREST = "INTEREST"
    DIVIDEND = "DIVIDEND"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"

    # Currency desk trades (ARS <-> USD), never produce lots
    BUY_USD = "BUY_USD"
    SELL_USD = "SELL_USD"


# Movements that open inventory vs. the ones that consume it
ADDITIVE_MOVEMENT_TYPES = frozenset({
    MovementType.BUY,
    MovementType.DEPOSIT,
    MovementType.TRANSFER_IN,
})
SUBTRACTIVE_MOVEMENT_TYPES = frozenset({
    MovementType.SELL,
    MovementType.WITHDRAW,
    MovementType.TRANSFER_OUT,
})


class MovementAssetClass(str, enum.Enum):
    CEDEAR = "cedear"
    CRYPTO = "crypto"
    FCI = "fci"
    PF = "pf"
    CURRENCY = "currency"
    WALLET = "wallet"


class AccountKind(str, enum.Enum):
    WALLET = "WALLET"
    BANK = "BANK"
    BROKER = "BROKER"
    EXCHANGE = "EXCHANGE"
    OTHER = "OTHER"


class AssetCategory(str, enum.Enum):
    CASH_ARS = "CASH_ARS"
    CASH_USD = "CASH_USD"
    CEDEAR = "CEDEAR"
    CRYPTO = "CRYPTO"
    STABLE = "STABLE"
    FCI = "FCI"
    PF = "PF"
    OTHER = "OTHER"

    @property
    def is_cash(self) -> bool:
        return self in (AssetCategory.CASH_ARS, AssetCategory.CASH_USD)


class FxFamily(str, enum.Enum):
    OFICIAL = "Oficial"
    MEP = "MEP"
    CCL = "CCL"
    CRIPTO = "Cripto"


class FxSide(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "FxSide":
        return FxSide.SELL if self is FxSide.BUY else FxSide.BUY


class ConversionDirection(str, enum.Enum):
    """Direction of an ARS/USD conversion; decides the quote side."""
    USD_TO_ARS = "USD_TO_ARS"  # holder sells USD -> sell/ask quote
    ARS_TO_USD = "ARS_TO_USD"  # holder buys USD -> buy/bid quote


class FxSource(str, enum.Enum):
    AUTO = "auto"
    OVERRIDE = "override"


class RubroId(str, enum.Enum):
    WALLETS = "wallets"
    FRASCOS = "frascos"
    PLAZOS = "plazos"
    CEDEARS = "cedears"
    CRYPTO = "crypto"
    FCI = "fci"


class ItemKind(str, enum.Enum):
    CASH_ARS = "cash_ars"
    CASH_USD = "cash_usd"
    WALLET_YIELD = "wallet_yield"
    PLAZO_FIJO = "plazo_fijo"
    CEDEAR = "cedear"
    CRYPTO = "crypto"
    STABLE = "stable"
    FCI = "fci"


class PriceSource(str, enum.Enum):
    QUOTE = "quote"
    LAST_TRADE = "last_trade"
    AVG_COST = "avg_cost"
    MISSING = "missing"


class CostingMethod(str, enum.Enum):
    FIFO = "FIFO"
    LIFO = "LIFO"
    AVERAGE = "AVERAGE"  # PPP (precio promedio ponderado)
    CHEAPEST = "CHEAPEST"
    MANUAL = "MANUAL"


class FeeMode(str, enum.Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class Compounding(str, enum.Enum):
    DAILY = "daily"
    SIMPLE = "simple"


class FixedDepositStatus(str, enum.Enum):
    """
    Lifecycle of a fixed deposit.

    State transitions:
        ACTIVE -> MATURED (as_of reaches the maturity date)
        ACTIVE | MATURED -> CLOSED (a redemption movement is recorded)
    """
    ACTIVE = "active"
    MATURED = "matured"
    CLOSED = "closed"


class DiagnosticCode(str, enum.Enum):
    CLASSIFICATION_CONFLICT = "classification_conflict"
    UNCLASSIFIED_POSITION = "unclassified_position"
    UNKNOWN_ACCOUNT = "unknown_account"
    DUPLICATE_ITEM = "duplicate_item"
    TOTALS_MISMATCH = "totals_mismatch"
    LOT_QUANTITY_MISMATCH = "lot_quantity_mismatch"
    FX_MISSING = "fx_missing"
    PRICE_MISSING = "price_missing"
