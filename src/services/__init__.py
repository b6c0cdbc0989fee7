"""Business logic services."""

from src.services.commission import calculate, calculate_reserve
from src.services.contracts import create_contract, preview_contract, update_contract
from src.services.errors import ContractValidationError
from src.services.rates import replace_rates, resolve_rate

__all__ = [
    "calculate",
    "calculate_reserve",
    "create_contract",
    "preview_contract",
    "update_contract",
    "ContractValidationError",
    "replace_rates",
    "resolve_rate",
]
