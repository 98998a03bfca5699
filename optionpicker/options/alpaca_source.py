"""Alpaca-backed market data source for contract selection."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, TypeVar

from optionpicker.core.config import AlpacaSettings, get_alpaca_settings
from optionpicker.options.chain import (
    ContractSnapshot,
    ExpirationDate,
    Greeks,
    OptionContract,
    OptionsChain,
    ProviderError,
    Quote,
    UnderlyingSnapshot,
)
from optionpicker.options.expirations import expiration_label

T = TypeVar("T")

_PAGE_LIMIT = 1000


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _side(value: Any) -> str:
    text = str(getattr(value, "value", value) or "").lower()
    return "put" if text == "put" else "call"


def _parse_contract(raw: Any) -> OptionContract:
    expiration = getattr(raw, "expiration_date", None)
    return OptionContract(
        symbol=str(getattr(raw, "symbol", "")),
        underlying=str(getattr(raw, "underlying_symbol", "") or ""),
        expiry=expiration_label(expiration) if expiration else "",
        strike=_to_float(getattr(raw, "strike_price", None)) or 0.0,
        side=_side(getattr(raw, "type", None)),  # type: ignore[arg-type]
        open_interest=_to_int(getattr(raw, "open_interest", None)),
    )


def _parse_quote(raw: Any) -> Optional[Quote]:
    if raw is None:
        return None
    return Quote(
        bid=_to_float(getattr(raw, "bid_price", None)),
        ask=_to_float(getattr(raw, "ask_price", None)),
    )


def _parse_greeks(raw: Any) -> Optional[Greeks]:
    if raw is None:
        return None
    return Greeks(
        delta=_to_float(getattr(raw, "delta", None)),
        gamma=_to_float(getattr(raw, "gamma", None)),
        theta=_to_float(getattr(raw, "theta", None)),
        vega=_to_float(getattr(raw, "vega", None)),
        rho=_to_float(getattr(raw, "rho", None)),
    )


class AlpacaMarketDataSource:
    """Serve expirations, chains and snapshots from Alpaca's REST APIs.

    The alpaca-py clients are synchronous, so every request is pushed onto the
    default executor. Clients are created on first use unless injected.
    """

    def __init__(
        self,
        settings: Optional[AlpacaSettings] = None,
        *,
        trading_client: Any = None,
        option_client: Any = None,
        stock_client: Any = None,
    ) -> None:
        self._settings = settings
        self._trading = trading_client
        self._options = option_client
        self._stocks = stock_client

    def _get_settings(self) -> AlpacaSettings:
        if self._settings is None:
            self._settings = get_alpaca_settings()
        return self._settings

    def _get_trading_client(self):  # type: ignore[no-untyped-def]
        if self._trading is None:
            settings = self._get_settings()
            key, secret = settings.require_credentials()
            from alpaca.trading.client import TradingClient

            self._trading = TradingClient(key, secret, paper=settings.paper)
        return self._trading

    def _get_option_client(self):  # type: ignore[no-untyped-def]
        if self._options is None:
            key, secret = self._get_settings().require_credentials()
            from alpaca.data.historical.option import OptionHistoricalDataClient

            self._options = OptionHistoricalDataClient(key, secret)
        return self._options

    def _get_stock_client(self):  # type: ignore[no-untyped-def]
        if self._stocks is None:
            key, secret = self._get_settings().require_credentials()
            from alpaca.data.historical.stock import StockHistoricalDataClient

            self._stocks = StockHistoricalDataClient(key, secret)
        return self._stocks

    async def _run(self, operation: str, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"{operation} failed: {exc}") from exc

    def _list_contracts(self, underlying: str, expiration: Optional[str] = None) -> List[Any]:
        from alpaca.trading.enums import AssetStatus
        from alpaca.trading.requests import GetOptionContractsRequest

        client = self._get_trading_client()
        contracts: List[Any] = []
        page_token: Optional[str] = None
        while True:
            request = GetOptionContractsRequest(
                underlying_symbols=[underlying.upper()],
                status=AssetStatus.ACTIVE,
                expiration_date=expiration,
                limit=_PAGE_LIMIT,
                page_token=page_token,
            )
            response = client.get_option_contracts(request)
            contracts.extend(getattr(response, "option_contracts", None) or [])
            page_token = getattr(response, "next_page_token", None)
            if not page_token:
                return contracts

    async def get_expirations(self, underlying: str) -> List[ExpirationDate]:
        def _call() -> List[ExpirationDate]:
            dates: set[str] = set()
            for raw in self._list_contracts(underlying):
                expiration = getattr(raw, "expiration_date", None)
                if expiration:
                    dates.add(expiration_label(expiration))
            return sorted(dates)

        return await self._run("get_expirations", _call)

    async def get_chain(self, underlying: str, expiration: ExpirationDate) -> OptionsChain:
        label = expiration_label(expiration)

        def _call() -> OptionsChain:
            calls: List[OptionContract] = []
            puts: List[OptionContract] = []
            for raw in self._list_contracts(underlying, label):
                contract = _parse_contract(raw)
                (calls if contract.side == "call" else puts).append(contract)
            return OptionsChain(
                underlying=underlying.upper(),
                expiry=label,
                calls=sorted(calls, key=lambda c: c.strike),
                puts=sorted(puts, key=lambda c: c.strike),
            )

        return await self._run("get_chain", _call)

    async def get_underlying_snapshot(self, underlying: str) -> Optional[UnderlyingSnapshot]:
        symbol = underlying.upper()

        def _call() -> Optional[UnderlyingSnapshot]:
            from alpaca.data.enums import DataFeed
            from alpaca.data.requests import StockSnapshotRequest

            feed = self._get_settings().data_feed
            request = StockSnapshotRequest(
                symbol_or_symbols=symbol,
                feed=DataFeed(feed.lower()) if feed else None,
            )
            response = self._get_stock_client().get_stock_snapshot(request)
            raw = response.get(symbol) if isinstance(response, dict) else response
            if raw is None:
                return None
            trade = getattr(raw, "latest_trade", None)
            return UnderlyingSnapshot(
                symbol=symbol,
                trade_price=_to_float(getattr(trade, "price", None)) if trade else None,
                quote=_parse_quote(getattr(raw, "latest_quote", None)),
            )

        return await self._run("get_underlying_snapshot", _call)

    async def get_contract_snapshot(self, contract_symbol: str) -> Optional[ContractSnapshot]:
        def _call() -> Optional[ContractSnapshot]:
            from alpaca.data.enums import OptionsFeed
            from alpaca.data.requests import OptionSnapshotRequest

            feed = self._get_settings().options_feed
            request = OptionSnapshotRequest(
                symbol_or_symbols=[contract_symbol],
                feed=OptionsFeed(feed.lower()) if feed else None,
            )
            response = self._get_option_client().get_option_snapshot(request)
            raw = response.get(contract_symbol) if isinstance(response, dict) else None
            if raw is None:
                return None
            return ContractSnapshot(
                symbol=contract_symbol,
                quote=_parse_quote(getattr(raw, "latest_quote", None)),
                greeks=_parse_greeks(getattr(raw, "greeks", None)),
                implied_volatility=_to_float(getattr(raw, "implied_volatility", None)),
            )

        return await self._run("get_contract_snapshot", _call)
