# grants_matching/db_config.py
"""Database configuration and connection string management"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus, urlparse

from grants_matching.config import Settings, settings as default_settings

SUPPORTED_SCHEMES = ('postgresql', 'postgresql+psycopg2', 'sqlite')

@dataclass
class DatabaseCredentials:
    """Database credentials container"""
    host: str
    port: str
    name: str
    user: str
    password: Optional[str]
    ssl_mode: str = 'prefer'

    def to_connection_string(self) -> str:
        """Generate database connection string with proper escaping"""
        auth = quote_plus(self.user)
        if self.password:
            auth += f":{quote_plus(self.password)}"
        return (
            f"postgresql://{auth}@{self.host}:{self.port}/"
            f"{self.name}?sslmode={self.ssl_mode}"
        )

    @classmethod
    def from_settings(cls, config: Settings) -> 'DatabaseCredentials':
        """Create credentials from the individual DB_* settings"""
        return cls(
            host=config.DB_HOST,
            port=config.DB_PORT,
            name=config.DB_NAME,
            user=config.DB_USER,
            password=config.DB_PASSWORD,
            ssl_mode=config.DB_SSL_MODE
        )

    @staticmethod
    def validate_url(url: str) -> bool:
        """Validate database URL scheme and that a database is named"""
        parsed = urlparse(url)
        if parsed.scheme not in SUPPORTED_SCHEMES:
            return False

        if parsed.scheme == 'sqlite':
            return True

        return bool(parsed.hostname) and bool(parsed.path.lstrip('/'))

class DatabaseManager:
    """Resolves the connection string the application should use"""

    @staticmethod
    def get_connection_string(config: Optional[Settings] = None) -> str:
        """
        Build the connection string from settings.

        Returns:
            DATABASE_URL if set, otherwise a URL assembled from DB_* settings

        Raises:
            ValueError: If the resulting URL is not a supported database URL
        """
        config = config or default_settings
        url = config.DATABASE_URL or DatabaseCredentials.from_settings(config).to_connection_string()
        if not DatabaseCredentials.validate_url(url):
            raise ValueError(f"Unsupported database URL scheme: {urlparse(url).scheme}")
        return url
