"""Coinbase spot price lookups"""
import logging
import time
from typing import Dict, Optional

import requests

from grants_matching.config import get_token, settings
from grants_matching.services.prices import BlockNumber, PriceConversion, to_usd

logger = logging.getLogger(__name__)

class CoinbasePriceOracle:
    """
    Converts token amounts with the current Coinbase spot price.

    Only "latest" prices are available; a historical block number is
    answered with the current price and a warning.
    """

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.COINBASE_API_URL).rstrip('/')
        self.session = session or requests.Session()
        self._spot_prices: Dict[str, float] = {}

    def _make_request(self, endpoint: str) -> dict:
        """Make request to Coinbase API with retries"""
        headers = {'Accept': 'application/json'}

        for attempt in range(3):  # 3 retries
            try:
                response = self.session.get(
                    f'{self.base_url}/{endpoint}',
                    headers=headers,
                    timeout=10
                )
                response.raise_for_status()
                return response.json()
            except requests.RequestException as e:
                if attempt == 2:  # Last attempt
                    raise
                logger.warning(f"Retrying request after error: {e}")
                time.sleep(1)  # Wait before retry

    def get_spot_price(self, symbol: str) -> float:
        """Spot price of symbol in USD, cached for the lifetime of the oracle"""
        if symbol not in self._spot_prices:
            response = self._make_request(f'prices/{symbol}-USD/spot')
            self._spot_prices[symbol] = float(response['data']['amount'])
        return self._spot_prices[symbol]

    def convert_to_usd(
            self,
            chain_id: int,
            token_address: str,
            amount: int,
            block_number: BlockNumber = "latest"
    ) -> PriceConversion:
        token = get_token(chain_id, token_address)
        if block_number != "latest":
            logger.warning(f"Coinbase has no historical prices, using spot price for block {block_number}")

        price = self.get_spot_price(token.symbol)
        return PriceConversion(amount=to_usd(amount, token.decimals, price), price=price)
