"""Option chain abstractions shared by the selection engine and providers."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Protocol, Union

Side = Literal["call", "put"]
Direction = Literal["bullish", "bearish"]

ExpirationDate = Union[str, _dt.date]

CONTRACT_MULTIPLIER = 100


class ProviderError(RuntimeError):
    """Raised by a market data source when a request cannot be served."""


def side_for_direction(direction: Direction) -> Side:
    return "call" if direction == "bullish" else "put"


@dataclass(frozen=True, slots=True)
class OptionContract:
    """Static description of a listed option contract."""

    symbol: str
    underlying: str
    expiry: str
    strike: float
    side: Side
    open_interest: Optional[int] = None


@dataclass(frozen=True, slots=True)
class OptionsChain:
    underlying: str
    expiry: str
    calls: List[OptionContract] = field(default_factory=list)
    puts: List[OptionContract] = field(default_factory=list)

    def for_side(self, side: Side) -> List[OptionContract]:
        return self.calls if side == "call" else self.puts


@dataclass(frozen=True, slots=True)
class Quote:
    bid: Optional[float] = None
    ask: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Greeks:
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    rho: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ContractSnapshot:
    """Point-in-time quote and greeks for one contract.

    Every field is optional because upstream responses for illiquid
    contracts routinely omit them. Consumers must treat a missing value as a
    failed check rather than substituting zero.
    """

    symbol: str
    quote: Optional[Quote] = None
    greeks: Optional[Greeks] = None
    implied_volatility: Optional[float] = None


@dataclass(frozen=True, slots=True)
class UnderlyingSnapshot:
    symbol: str
    trade_price: Optional[float] = None
    quote: Optional[Quote] = None


@dataclass(frozen=True, slots=True)
class SelectionRequest:
    """What the strategy wants: a view on ``symbol`` sized against ``equity``."""

    symbol: str
    direction: Direction
    equity: float


@dataclass(frozen=True, slots=True)
class Selected:
    symbol: str
    underlying: str
    strike: float
    expiration: str
    delta: float
    mid_price: float
    max_contracts: int
    side: Side
    status: Literal["selected"] = "selected"

    def as_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "symbol": self.symbol,
            "underlying": self.underlying,
            "strike": self.strike,
            "expiration": self.expiration,
            "delta": self.delta,
            "mid_price": self.mid_price,
            "max_contracts": self.max_contracts,
            "side": self.side,
        }


@dataclass(frozen=True, slots=True)
class NotFound:
    reason: str
    stage: str
    status: Literal["not_found"] = "not_found"

    def as_dict(self) -> dict[str, object]:
        return {"status": self.status, "reason": self.reason, "stage": self.stage}


SelectionResult = Union[Selected, NotFound]


class MarketDataSource(Protocol):
    """Interface for the market data the selection engine consumes."""

    async def get_expirations(self, underlying: str) -> List[ExpirationDate]:
        """Return listed expiration dates for ``underlying``, ascending."""

    async def get_chain(self, underlying: str, expiration: ExpirationDate) -> OptionsChain:
        """Return the calls and puts listed for ``expiration``."""

    async def get_underlying_snapshot(self, underlying: str) -> Optional[UnderlyingSnapshot]:
        """Return the latest trade/quote for the underlying."""

    async def get_contract_snapshot(self, contract_symbol: str) -> Optional[ContractSnapshot]:
        """Return quote and greeks for a single contract, or ``None``."""
