from __future__ import annotations

"""backend/gas_payer/config/settings.py

Application configuration using environment-driven settings.

This module centralizes:
- logging level
- CORS configuration
- connection parameters for the external relay service
- API key / IP whitelist security config location
- Statsig analytics key
"""
from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  app_name: str = "gas-payer-service"
  environment: str = "development"
  log_level: str = "INFO"

  # CORS
  allowed_origins: List[AnyHttpUrl] = [
      "http://localhost:3000",
      "http://127.0.0.1:3000",
  ]

  # Relay service (signing, RPC submission and balance checks live there)
  relay_base_url: str = "http://blockchain-relay:8080/api"
  relay_api_key: str | None = None
  relay_timeout_seconds: float = 60.0
  chain_id: int | None = None

  # API key + IP whitelist
  security_enabled: bool = False
  security_config_path: str = "/app/config/security-config.json"

  # Analytics
  statsig_server_secret: str | None = None

  model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Return a cached Settings instance."""
  return Settings()
