"""Conversion of token amounts to USD"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Union

from grants_matching.config import token_decimals
from grants_matching.errors import ResourceNotFoundError
from grants_matching.services.storage import StorageService

logger = logging.getLogger(__name__)

BlockNumber = Union[int, str]

@dataclass
class PriceConversion:
    amount: float
    price: float

def to_usd(amount: int, decimals: int, price: float) -> float:
    """Scale a raw token amount by its decimals and multiply by the USD price"""
    return float(Decimal(amount) / (Decimal(10) ** decimals) * Decimal(str(price)))

class PriceOracle(Protocol):
    def convert_to_usd(
            self,
            chain_id: int,
            token_address: str,
            amount: int,
            block_number: BlockNumber = "latest"
    ) -> PriceConversion:
        ...

class DatabasePriceOracle:
    """Prices from the prices table, latest at or before the requested block"""

    def __init__(self, storage: StorageService):
        self.storage = storage

    def convert_to_usd(
            self,
            chain_id: int,
            token_address: str,
            amount: int,
            block_number: BlockNumber = "latest"
    ) -> PriceConversion:
        decimals = token_decimals(chain_id, token_address)
        price = self.storage.get_token_price_by_block_number(chain_id, token_address.lower(), block_number)
        if price is None:
            raise ResourceNotFoundError(f"price of {token_address} on chain {chain_id} at block {block_number}")

        return PriceConversion(
            amount=to_usd(amount, decimals, price.price_in_usd),
            price=price.price_in_usd
        )
