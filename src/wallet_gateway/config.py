"""
Configuration management using pydantic-settings.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Test networks only: mining and faucet-style flows make no sense on mainnet
    network: Literal["regtest", "testnet", "signet"] = "regtest"

    rpc_url: str = "http://127.0.0.1:18443"
    rpc_user: str = ""
    rpc_password: str = ""
    rpc_timeout: float = 30.0

    http_host: str = "127.0.0.1"
    http_port: int = 8021

    cors_origin: str = "http://localhost:8080"

    max_blocks_per_request: int = 1000

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
