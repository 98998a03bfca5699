"""Contract selection engine and market data sources."""

from optionpicker.options.chain import (
    ContractSnapshot,
    MarketDataSource,
    NotFound,
    OptionContract,
    OptionsChain,
    ProviderError,
    Selected,
    SelectionRequest,
    SelectionResult,
    UnderlyingSnapshot,
)
from optionpicker.options.select import ContractSelector, select_contract

__all__ = [
    "ContractSelector",
    "ContractSnapshot",
    "MarketDataSource",
    "NotFound",
    "OptionContract",
    "OptionsChain",
    "ProviderError",
    "Selected",
    "SelectionRequest",
    "SelectionResult",
    "UnderlyingSnapshot",
    "select_contract",
]
