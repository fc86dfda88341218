"""Pool interface shared by all pool variants.

Every variant quotes swaps in both directions, reports how much a pair can
carry and how deep it is. Quotes never touch pool state unless called with
mutate=True; the router mutates only working copies (see PoolGraph).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

import structlog

from sor.errors import InvalidInput, NegativeSwapResult
from sor.math import fixed_point as fp
from sor.models.token import PoolToken, Token, TokenAmount
from sor.models.types import SwapKind, normalize_address

logger = structlog.get_logger()


class PoolType(str, Enum):
    """Closed set of pool variants the router understands."""

    WEIGHTED = "WEIGHTED"
    STABLE = "STABLE"
    COMPOSABLE_STABLE = "COMPOSABLE_STABLE"
    LINEAR = "LINEAR"
    FX = "FX"


class BasePool(ABC):
    """A liquidity pool holding an ordered list of token balances.

    Attributes:
        id: Pool id (Vault pool id or address)
        address: Pool contract address, which is also its BPT address
        chain: Chain the pool lives on
        version: Pool type version; changes some rounding paths
        swap_fee: Swap fee as an 18-decimal fraction
        total_shares: BPT supply, tracked for pools that trade their own BPT
        tokens: Pool balances sorted by index
    """

    pool_type: ClassVar[PoolType]

    def __init__(
        self,
        id: str,
        address: str,
        chain: str,
        swap_fee: int,
        tokens: list[PoolToken],
        version: int = 1,
        total_shares: int = 0,
    ) -> None:
        self.id = id.lower()
        self.address = normalize_address(address)
        self.chain = chain
        self.version = version
        self.swap_fee = swap_fee
        self.total_shares = total_shares
        self.tokens = sorted(tokens, key=lambda t: t.index)
        self._token_map = {t.token.address: t for t in self.tokens}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id})"

    # --- Token lookup ---

    @property
    def token_addresses(self) -> list[str]:
        return [t.token.address for t in self.tokens]

    def has_token(self, address: str) -> bool:
        return normalize_address(address) in self._token_map

    def get_pool_token(self, token: Token | str) -> PoolToken:
        """Balance entry for a token.

        Raises:
            InvalidInput: If the pool does not hold the token
        """
        address = token.address if isinstance(token, Token) else normalize_address(token)
        pool_token = self._token_map.get(address)
        if pool_token is None:
            raise InvalidInput(f"Pool {self.id} does not contain token {address}")
        return pool_token

    def is_bpt(self, token: Token | PoolToken) -> bool:
        """True for the pool's own share token."""
        address = token.token.address if isinstance(token, PoolToken) else token.address
        return address == self.address

    # --- Fees ---

    def subtract_swap_fee_amount(self, amount: TokenAmount) -> TokenAmount:
        return amount.sub(amount.mul_up_fixed(self.swap_fee))

    def add_swap_fee_amount(self, amount: TokenAmount) -> TokenAmount:
        return amount.div_up_fixed(fp.complement(self.swap_fee))

    # --- Swaps ---

    def swap_given_in(
        self, token_in: Token, token_out: Token, amount_in: TokenAmount, mutate: bool = False
    ) -> TokenAmount:
        """Amount of token_out received for exactly amount_in of token_in.

        Raises:
            InvalidInput: If the pool does not hold one of the tokens
            SwapLimitExceeded: If the pool refuses the amount
            NegativeSwapResult: If the pool math produces a negative amount
        """
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        if t_in is t_out:
            return TokenAmount(amount_in.token, amount_in.amount)

        amount_out = self._swap_given_in(t_in, t_out, amount_in)
        if amount_out.amount < 0:
            raise NegativeSwapResult(f"Pool {self.id} returned negative output {amount_out.amount}")

        if mutate:
            self._apply_swap(t_in, t_out, amount_in.amount, amount_out.amount)
        return amount_out

    def swap_given_out(
        self, token_in: Token, token_out: Token, amount_out: TokenAmount, mutate: bool = False
    ) -> TokenAmount:
        """Amount of token_in required to receive exactly amount_out of token_out.

        Raises:
            InvalidInput: If the pool does not hold one of the tokens
            SwapLimitExceeded: If the pool refuses the amount
            NegativeSwapResult: If the pool math produces a negative amount
        """
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        if t_in is t_out:
            return TokenAmount(amount_out.token, amount_out.amount)

        amount_in = self._swap_given_out(t_in, t_out, amount_out)
        if amount_in.amount < 0:
            raise NegativeSwapResult(f"Pool {self.id} returned negative input {amount_in.amount}")

        if mutate:
            self._apply_swap(t_in, t_out, amount_in.amount, amount_out.amount)
        return amount_in

    def swap(
        self,
        token_in: Token,
        token_out: Token,
        amount: TokenAmount,
        swap_kind: SwapKind,
        mutate: bool = False,
    ) -> TokenAmount:
        """Dispatch to swap_given_in or swap_given_out."""
        if swap_kind == SwapKind.GIVEN_IN:
            return self.swap_given_in(token_in, token_out, amount, mutate)
        return self.swap_given_out(token_in, token_out, amount, mutate)

    def _apply_swap(self, t_in: PoolToken, t_out: PoolToken, amount_in: int, amount_out: int) -> None:
        t_in.increase(amount_in)
        t_out.decrease(amount_out)
        if self.is_bpt(t_in):
            self.total_shares -= amount_in
        elif self.is_bpt(t_out):
            self.total_shares += amount_out
        logger.debug(
            "pool_balances_updated",
            pool_id=self.id,
            token_in=t_in.token.address,
            amount_in=amount_in,
            token_out=t_out.token.address,
            amount_out=amount_out,
        )

    @abstractmethod
    def _swap_given_in(self, t_in: PoolToken, t_out: PoolToken, amount_in: TokenAmount) -> TokenAmount:
        """Variant math for swap_given_in; tokens are distinct and held by the pool."""

    @abstractmethod
    def _swap_given_out(self, t_in: PoolToken, t_out: PoolToken, amount_out: TokenAmount) -> TokenAmount:
        """Variant math for swap_given_out; tokens are distinct and held by the pool."""

    # --- Limits and depth ---

    @abstractmethod
    def get_limit_amount_swap(self, token_in: Token, token_out: Token, swap_kind: SwapKind) -> int:
        """Largest raw amount of the given side the pool accepts for this pair."""

    @abstractmethod
    def get_normalized_liquidity(self, token_in: Token, token_out: Token) -> int:
        """18-decimal depth estimate of the pair, in token_out units."""

    def spot_price(self, token_in: Token, token_out: Token) -> int:
        """Marginal price as 18-decimal token_in per token_out.

        Quotes a probe of one millionth of the input balance (at least one
        raw unit) and divides the 18-decimal amounts.

        Raises:
            SwapLimitExceeded: If even the probe is refused
        """
        t_in = self.get_pool_token(token_in)
        probe = TokenAmount(t_in.token, max(1, t_in.amount // 10**6))
        amount_out = self.swap_given_in(token_in, token_out, probe)
        if amount_out.scale18 == 0:
            return 0
        return fp.div_down(probe.scale18, amount_out.scale18)
