"""Application configuration and environment settings"""
from typing import Dict, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from grants_matching.errors import ResourceNotFoundError

class TokenInfo(BaseModel):
    """Token known to the matching calculator"""
    address: str = Field(..., description="Token contract address, zero address for the native token")
    symbol: str = Field(..., description="Ticker used for price lookups")
    decimals: int = Field(..., description="Number of decimals of the token")

NATIVE_TOKEN = "0x0000000000000000000000000000000000000000"

TOKENS: Dict[int, Dict[str, TokenInfo]] = {
    # Ethereum mainnet
    1: {
        NATIVE_TOKEN: TokenInfo(address=NATIVE_TOKEN, symbol="ETH", decimals=18),
        "0x6b175474e89094c44da98b954eedeac495271d0f": TokenInfo(
            address="0x6b175474e89094c44da98b954eedeac495271d0f", symbol="DAI", decimals=18
        ),
        "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": TokenInfo(
            address="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48", symbol="USDC", decimals=6
        ),
    },
    # Optimism
    10: {
        NATIVE_TOKEN: TokenInfo(address=NATIVE_TOKEN, symbol="ETH", decimals=18),
        "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1": TokenInfo(
            address="0xda10009cbd5d07dd0cecc66161fc93d7c9000da1", symbol="DAI", decimals=18
        ),
    },
    # Fantom
    250: {
        NATIVE_TOKEN: TokenInfo(address=NATIVE_TOKEN, symbol="FTM", decimals=18),
        "0x8d11ec38a3eb5e956b052f67da8bdc9bef8abf3e": TokenInfo(
            address="0x8d11ec38a3eb5e956b052f67da8bdc9bef8abf3e", symbol="DAI", decimals=18
        ),
    },
    # Arbitrum One
    42161: {
        NATIVE_TOKEN: TokenInfo(address=NATIVE_TOKEN, symbol="ETH", decimals=18),
        "0xaf88d065e77c8cc2239327c5edb3a432268e5831": TokenInfo(
            address="0xaf88d065e77c8cc2239327c5edb3a432268e5831", symbol="USDC", decimals=6
        ),
    },
}

def get_token(chain_id: int, address: str) -> TokenInfo:
    """Look up a token by chain and address (case insensitive)"""
    token = TOKENS.get(chain_id, {}).get(address.lower())
    if token is None:
        raise ResourceNotFoundError(f"token {address} on chain {chain_id}")
    return token

def token_decimals(chain_id: int, address: str) -> int:
    return get_token(chain_id, address).decimals

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Database settings, DATABASE_URL wins over the individual parts
    DATABASE_URL: Optional[str] = Field(None, description="Full SQLAlchemy database URL")
    DB_HOST: str = Field("localhost", description="Database host")
    DB_PORT: str = Field("5432", description="Database port")
    DB_NAME: str = Field("grants", description="Database name")
    DB_USER: str = Field("grants", description="Database user")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password")
    DB_SSL_MODE: str = Field("prefer", description="PostgreSQL sslmode")
    DATABASE_SCHEMA: Optional[str] = Field("chain_data", description="Schema holding the indexed tables")

    # Background jobs
    FLUSH_DONATION_BATCH_EVERY_SECONDS: float = 5.0
    UPDATE_STATS_EVERY_SECONDS: float = 60.0
    # 1k rows keeps bulk inserts under the 65k bind parameter limit of postgres
    DONATION_BATCH_CHUNK_SIZE: int = 1_000
    ROUND_TOKEN_CACHE_SIZE: int = 500

    # Price lookups
    COINBASE_API_URL: str = Field("https://api.coinbase.com/v2", description="Coinbase public API base URL")

    # Input/Output directories with defaults
    DATA_DIR: str = Field("./data", description="Directory containing round input files")
    OUTPUT_DIR: str = Field("./output", description="Directory for output files")

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

settings = Settings()
