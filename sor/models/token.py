"""Tokens and token amounts.

TokenAmount binds a raw integer amount to a token and keeps the matching
18-decimal value (scale18) next to it. Arithmetic between amounts of the same
token works on raw amounts; anything crossing tokens goes through scale18.

PoolToken is the mutable flavour used for pool balances: swaps executed with
mutate=True move its amount and recompute scale18 in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, Overflow, localcontext

from sor.errors import InvalidInput, NegativeAmount
from sor.math import fixed_point as fp
from sor.models.types import DECIMAL_PRECISION, format_units, normalize_address


@dataclass(frozen=True)
class Token:
    """An ERC20 token on a given chain.

    Identity is (chain, address); decimals, symbol and name are descriptive.
    Addresses are stored lowercase.
    """

    chain: str
    address: str
    decimals: int = field(compare=False)
    symbol: str = field(default="", compare=False)
    name: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        if not 0 <= self.decimals <= 18:
            raise InvalidInput(f"Token {self.address} has unsupported decimals {self.decimals}")

    @property
    def scalar(self) -> int:
        """Factor taking a raw amount to 18 decimals."""
        return 10 ** (18 - self.decimals)

    def __str__(self) -> str:
        return self.symbol or self.address


def parse_units(human_amount: str | Decimal, decimals: int) -> int:
    """Convert a human-readable decimal amount to raw integer units.

    Raises:
        InvalidInput: If the amount is malformed, negative or carries more
            fraction digits than the token supports
    """
    try:
        value = Decimal(str(human_amount).strip())
    except InvalidOperation as err:
        raise InvalidInput(f"Invalid amount: '{human_amount}'") from err
    if not value.is_finite() or value < 0:
        raise InvalidInput(f"Invalid amount: '{human_amount}'")

    try:
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            scaled = value.scaleb(decimals)
    except Overflow as err:
        raise InvalidInput(f"Amount out of range: '{human_amount}'") from err
    if scaled != scaled.to_integral_value():
        raise InvalidInput(f"Amount '{human_amount}' has more than {decimals} decimals")
    return int(scaled)


class TokenAmount:
    """An amount of a specific token.

    Attributes:
        token: The token the amount is denominated in
        amount: Raw amount in the token's native decimals
        scale18: The amount expressed with 18 decimals
    """

    __slots__ = ("token", "amount", "scale18")

    def __init__(self, token: Token, amount: int) -> None:
        self.token = token
        self.amount = amount
        self.scale18 = amount * token.scalar

    @classmethod
    def from_raw_amount(cls, token: Token, raw_amount: int | str) -> TokenAmount:
        try:
            amount = int(raw_amount)
        except (TypeError, ValueError) as err:
            raise InvalidInput(f"Invalid raw amount: '{raw_amount}'") from err
        return TokenAmount(token, amount)

    @classmethod
    def from_human_amount(cls, token: Token, human_amount: str | Decimal) -> TokenAmount:
        return TokenAmount(token, parse_units(human_amount, token.decimals))

    @classmethod
    def from_scale18_amount(
        cls, token: Token, scale18_amount: int, round_up: bool = False
    ) -> TokenAmount:
        """Build an amount from an 18-decimal value, rounding down unless asked."""
        scalar = token.scalar
        if round_up and scale18_amount > 0:
            raw = (scale18_amount - 1) // scalar + 1
        else:
            raw = scale18_amount // scalar
        return TokenAmount(token, raw)

    def _check_same_token(self, other: TokenAmount) -> None:
        if other.token != self.token:
            raise InvalidInput(f"Cannot combine amounts of {self.token} and {other.token}")

    def add(self, other: TokenAmount) -> TokenAmount:
        self._check_same_token(other)
        return TokenAmount(self.token, self.amount + other.amount)

    def sub(self, other: TokenAmount) -> TokenAmount:
        """Subtract, failing when the result would be negative.

        Raises:
            NegativeAmount: If other is larger than self
        """
        self._check_same_token(other)
        result = self.amount - other.amount
        if result < 0:
            raise NegativeAmount(f"{self.amount} - {other.amount} < 0 for {self.token}")
        return TokenAmount(self.token, result)

    def mul_up_fixed(self, other: int) -> TokenAmount:
        return TokenAmount(self.token, fp.mul_up(self.amount, other))

    def mul_down_fixed(self, other: int) -> TokenAmount:
        return TokenAmount(self.token, fp.mul_down(self.amount, other))

    def div_up_fixed(self, other: int) -> TokenAmount:
        return TokenAmount(self.token, fp.div_up(self.amount, other))

    def div_down_fixed(self, other: int) -> TokenAmount:
        return TokenAmount(self.token, fp.div_down(self.amount, other))

    def to_human(self) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            return Decimal(self.amount).scaleb(-self.token.decimals)

    def to_significant(self) -> str:
        return format_units(self.amount, self.token.decimals)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenAmount):
            return NotImplemented
        return self.token == other.token and self.amount == other.amount

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.token}, {self.amount})"


class PoolToken(TokenAmount):
    """A pool balance that swaps may move in place.

    Subclasses that scale balances differently (rates, prices) override
    _rescale; increase/decrease always call it after changing the amount.
    """

    __slots__ = ("index",)

    def __init__(self, token: Token, amount: int, index: int) -> None:
        super().__init__(token, amount)
        self.index = index
        self._rescale()

    def _rescale(self) -> None:
        self.scale18 = self.amount * self.token.scalar

    def increase(self, amount: int) -> PoolToken:
        self.amount += amount
        self._rescale()
        return self

    def decrease(self, amount: int) -> PoolToken:
        """Remove amount from the balance.

        Raises:
            NegativeAmount: If the balance would go below zero
        """
        if amount > self.amount:
            raise NegativeAmount(f"Balance of {self.token} ({self.amount}) cannot cover {amount}")
        self.amount -= amount
        self._rescale()
        return self


class RatedPoolToken(PoolToken):
    """Pool balance carrying a price rate (stable, composable stable, linear).

    The invariant-space balance is raw amount x scalar x rate.
    """

    __slots__ = ("rate",)

    def __init__(self, token: Token, amount: int, index: int, rate: int = fp.ONE) -> None:
        self.rate = rate
        super().__init__(token, amount, index)

    def _rescale(self) -> None:
        self.scale18 = (self.amount * self.token.scalar * self.rate) // fp.ONE
