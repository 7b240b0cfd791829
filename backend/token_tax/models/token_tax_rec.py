"""TokenTax transaction record model."""
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_serializer, field_validator
from token_tax.utils.errors import DecodeError, RecordInvariantError
from token_tax.utils.time_ms import time_ms_to_utc_string, utc_string_to_time_ms

# Column order of a TokenTax CSV export
CSV_COLUMNS = (
    "Type",
    "BuyAmount",
    "BuyCurrency",
    "SellAmount",
    "SellCurrency",
    "FeeAmount",
    "FeeCurrency",
    "Exchange",
    "Group",
    "Comment",
    "Date",
)

# Validation context key set while decoding CSV rows
_DECODING = "decoding"


class _DeclarationOrderedEnum(str, Enum):
    """String enum whose members order by declaration, not by value."""

    def __str__(self) -> str:
        return self.value

    def _rank(self) -> int:
        return _declaration_ranks(type(self))[self]

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() < other._rank()

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() <= other._rank()

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() > other._rank()

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._rank() >= other._rank()


@lru_cache(maxsize=None)
def _declaration_ranks(enum_cls: Type[Enum]) -> Dict[Enum, int]:
    return {member: rank for rank, member in enumerate(enum_cls)}


class TokenTaxRecType(_DeclarationOrderedEnum):
    """Transaction type enumeration."""
    INCOME = "Income"
    DEPOSIT = "Deposit"
    MINING = "Mining"
    GIFT = "Gift"
    TRADE = "Trade"
    WITHDRAWAL = "Withdrawal"
    SPEND = "Spend"
    LOST = "Lost"
    STOLEN = "Stolen"
    UNKNOWN = "Unknown"  # unset, never valid in a CSV row


class GroupType(_DeclarationOrderedEnum):
    """Optional sub-classification of a record."""
    MARGIN = "margin"


class _Side(Enum):
    BUY = "buy"
    SELL = "sell"


# Which side of the record holds the asset a transaction type is about
_SUBJECT_SIDE: Dict[TokenTaxRecType, _Side] = {
    TokenTaxRecType.TRADE: _Side.BUY,
    TokenTaxRecType.DEPOSIT: _Side.BUY,
    TokenTaxRecType.INCOME: _Side.BUY,
    TokenTaxRecType.MINING: _Side.BUY,
    TokenTaxRecType.WITHDRAWAL: _Side.SELL,
    TokenTaxRecType.SPEND: _Side.SELL,
    TokenTaxRecType.LOST: _Side.SELL,
    TokenTaxRecType.STOLEN: _Side.SELL,
    TokenTaxRecType.GIFT: _Side.SELL,
}


def _compare_values(left: Any, right: Any) -> Optional[int]:
    """Three-way compare; None when the values are not ordered (decimal NaN)."""
    try:
        if left == right:
            return 0
        if left < right:
            return -1
        if left > right:
            return 1
    except InvalidOperation:
        return None
    return None


def _compare_optional(left: Any, right: Any) -> Optional[int]:
    """Three-way compare where an absent value sorts before any present one."""
    if left is None or right is None:
        if left is None and right is None:
            return 0
        return -1 if left is None else 1
    return _compare_values(left, right)


# Equality and ordering precedence: time first so sorting is chronological
_ORDERING: Tuple[Tuple[str, Callable[[Any, Any], Optional[int]]], ...] = (
    ("time", _compare_values),
    ("kind", _compare_values),
    ("buy_currency", _compare_values),
    ("sell_currency", _compare_values),
    ("fee_currency", _compare_values),
    ("buy_amount", _compare_optional),
    ("sell_amount", _compare_optional),
    ("fee_amount", _compare_optional),
    ("exchange", _compare_values),
    ("group", _compare_optional),
    ("comment", _compare_values),
)


class TokenTaxRec(BaseModel):
    """
    One row of a TokenTax CSV export.

    ``TokenTaxRec()`` is the zero value: type ``Unknown``, no amounts, empty
    strings and time 0. Fields can be set by name or by CSV column name.
    Which side of the record is authoritative depends on ``kind``; use
    ``get_asset``, ``get_other_asset`` and ``get_quantity`` instead of
    reading the buy/sell fields directly.
    """
    model_config = ConfigDict(populate_by_name=True)

    kind: TokenTaxRecType = Field(default=TokenTaxRecType.UNKNOWN, alias="Type", description="Transaction type")
    buy_amount: Optional[Decimal] = Field(None, alias="BuyAmount", description="Amount received")
    buy_currency: str = Field(default="", alias="BuyCurrency", description="Currency received")
    sell_amount: Optional[Decimal] = Field(None, alias="SellAmount", description="Amount given")
    sell_currency: str = Field(default="", alias="SellCurrency", description="Currency given")
    fee_amount: Optional[Decimal] = Field(None, alias="FeeAmount", description="Fee paid")
    fee_currency: str = Field(default="", alias="FeeCurrency", description="Currency the fee was paid in")
    exchange: str = Field(default="", alias="Exchange", description="Exchange or venue name")
    group: Optional[GroupType] = Field(None, alias="Group", description="Optional group, e.g. margin")
    comment: str = Field(default="", alias="Comment", description="Free text comment")
    time: int = Field(default=0, alias="Date", description="UTC timestamp in milliseconds since epoch")

    @field_validator("buy_amount", "sell_amount", "fee_amount", "group", mode="before")
    @classmethod
    def _empty_cell_is_absent(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value

    @field_validator("buy_currency", "sell_currency", "fee_currency", "exchange", "comment", mode="before")
    @classmethod
    def _missing_cell_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("time", mode="before")
    @classmethod
    def _parse_utc_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return utc_string_to_time_ms(value)
        return value

    @field_validator("kind")
    @classmethod
    def _reject_unknown_when_decoding(cls, value: TokenTaxRecType, info: ValidationInfo) -> TokenTaxRecType:
        if value is TokenTaxRecType.UNKNOWN and info.context and info.context.get(_DECODING):
            raise ValueError("Unknown is not a valid transaction type")
        return value

    @field_serializer("buy_amount", "sell_amount", "fee_amount", when_used="json")
    def _serialize_amount(self, amount: Optional[Decimal]) -> Optional[str]:
        # fixed point keeps the scale and never switches to exponent notation
        return None if amount is None else format(amount, "f")

    @field_serializer("time", when_used="json")
    def _serialize_date(self, time: int) -> str:
        return time_ms_to_utc_string(time)

    @classmethod
    def from_csv_row(cls, row: Mapping[str, Optional[str]]) -> "TokenTaxRec":
        """
        Decode a CSV row keyed by column name.

        Raises:
            DecodeError: Naming the first column that could not be decoded
        """
        missing = [column for column in CSV_COLUMNS if column not in row]
        if missing:
            raise DecodeError(missing[0], None, "missing column")
        try:
            return cls.model_validate(dict(row), context={_DECODING: True})
        except ValidationError as e:
            error = e.errors()[0]
            column = _column_for(error["loc"])
            value = row.get(column) if column else None
            raise DecodeError(column, value, error["msg"]) from e

    def to_csv_row(self) -> Dict[str, str]:
        """Encode as CSV cells keyed by column name; absent values are empty."""
        dumped = self.model_dump(mode="json", by_alias=True)
        return {column: "" if value is None else str(value) for column, value in dumped.items()}

    def _subject_side(self) -> _Side:
        side = _SUBJECT_SIDE.get(self.kind)
        if side is None:
            raise RecordInvariantError(f"{self.kind} record has no subject asset")
        return side

    def get_asset(self) -> str:
        """Currency this transaction is about."""
        if self._subject_side() is _Side.BUY:
            return self.buy_currency
        return self.sell_currency

    def get_other_asset(self) -> str:
        """Counterpart currency of the transaction."""
        if self._subject_side() is _Side.BUY:
            return self.sell_currency
        return self.buy_currency

    def get_quantity(self) -> Decimal:
        """
        Quantity of the asset returned by ``get_asset``.

        Raises:
            RecordInvariantError: For ``Unknown`` records or when the
                authoritative amount is missing
        """
        if self._subject_side() is _Side.BUY:
            amount, field_name = self.buy_amount, "buy_amount"
        else:
            amount, field_name = self.sell_amount, "sell_amount"
        if amount is None:
            raise RecordInvariantError(f"{self.kind} record is missing {field_name}")
        return amount

    def compare(self, other: "TokenTaxRec") -> Optional[int]:
        """
        Three-way compare with another record.

        Returns -1, 0 or 1, or None if some field pair cannot be ordered.
        """
        for field_name, comparator in _ORDERING:
            result = comparator(getattr(self, field_name), getattr(other, field_name))
            if result != 0:
                return result
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenTaxRec):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: "TokenTaxRec") -> bool:
        if not isinstance(other, TokenTaxRec):
            return NotImplemented
        result = self.compare(other)
        return result is not None and result < 0

    def __le__(self, other: "TokenTaxRec") -> bool:
        if not isinstance(other, TokenTaxRec):
            return NotImplemented
        result = self.compare(other)
        return result is not None and result <= 0

    def __gt__(self, other: "TokenTaxRec") -> bool:
        if not isinstance(other, TokenTaxRec):
            return NotImplemented
        result = self.compare(other)
        return result is not None and result > 0

    def __ge__(self, other: "TokenTaxRec") -> bool:
        if not isinstance(other, TokenTaxRec):
            return NotImplemented
        result = self.compare(other)
        return result is not None and result >= 0

    def __str__(self) -> str:
        return (
            f"time: {time_ms_to_utc_string(self.time)} kind: {self.kind} "
            f"buy_amount: {self.buy_amount!r} buy_currency: {self.buy_currency} "
            f"sell_amount: {self.sell_amount!r} sell_currency: {self.sell_currency} "
            f"fee_amount: {self.fee_amount!r} fee_currency: {self.fee_currency} "
            f"exchange: {self.exchange} group: {self.group!r} comment: {self.comment}"
        )


_COLUMN_BY_FIELD = {name: info.alias for name, info in TokenTaxRec.model_fields.items()}


def _column_for(loc: Tuple[Any, ...]) -> Optional[str]:
    """Map a pydantic error location to its CSV column name."""
    if not loc:
        return None
    key = loc[0]
    if key in CSV_COLUMNS:
        return key
    return _COLUMN_BY_FIELD.get(key)
