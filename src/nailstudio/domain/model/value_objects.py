"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from nailstudio.domain.exceptions import ValidationError

_CENT = Decimal("0.01")


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True, order=False)
class Money:
    """Monetary amount held as integer minor units (cents).

    Decimal currency units only appear at the edges: ``Money.of()`` parses
    them and ``str()`` / ``to_decimal()`` format them.  Everything in
    between is integer arithmetic, so repeated computation never drifts.

    Amounts may be negative; discount line items carry negative money.
    """

    cents: int
    currency: str = "USD"

    def __post_init__(self) -> None:
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise ValidationError(
                f"Money cents must be an int, got {type(self.cents).__name__}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.cents + other.cents, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.cents - other.cents, self.currency)

    def __mul__(self, factor: int) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.cents * factor, self.currency)

    def negate(self) -> Money:
        return Money(-self.cents, self.currency)

    def percent(self, rate: Decimal | int | str) -> Money:
        """Return ``rate`` percent of this amount, rounded half up to the cent."""
        try:
            rate = Decimal(str(rate))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid percentage: {rate!r}") from exc
        return Money(_round_half_up(Decimal(self.cents) * rate / 100), self.currency)

    def clamp_min(self, floor: Money) -> Money:
        return self if self >= floor else floor

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.cents < other.cents

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.cents <= other.cents

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.cents > other.cents

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.cents >= other.cents

    @property
    def is_zero(self) -> bool:
        return self.cents == 0

    # --- Display --------------------------------------------------------------

    def to_decimal(self) -> Decimal:
        return (Decimal(self.cents) / 100).quantize(_CENT)

    def __str__(self) -> str:
        sign = "-" if self.cents < 0 else ""
        return f"{sign}${abs(self.to_decimal()):.2f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def of(amount: str | float | int | Decimal, currency: str = "USD") -> Money:
        """Parse an amount in currency units (``"25.50"``) into cents."""
        if isinstance(amount, str):
            amount = amount.strip().lstrip("$")
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        if not value.is_finite():
            raise ValidationError(f"Invalid money amount: {amount!r}")
        return Money(_round_half_up(value * 100), currency)

    @staticmethod
    def zero(currency: str = "USD") -> Money:
        return Money(0, currency)


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative sets.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)
