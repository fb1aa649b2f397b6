# backend/gas_payer/api/security.py
from __future__ import annotations

"""
API key + IP whitelist checks and client credential resolution.

The security config is a JSON file (``Settings.security_config_path``)::

    {
      "apiKeys": [
        {
          "key": "....",
          "name": "acme",
          "allowedIps": ["203.0.113.7", "10.0.0.0/24"],
          "clientCredentials": "opaque-token-for-the-relay"
        }
      ]
    }

A request must carry a configured key in ``X-API-KEY`` *and* come from an
address whitelisted for that key. The key's ``clientCredentials`` (if any)
becomes the opaque credential passed to the relay.
"""

import ipaddress
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from gas_payer.config import Settings, get_settings
from gas_payer.services.relay.base import ClientCredentials

logger = logging.getLogger(__name__)


class ApiKeyEntry(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    name: str
    allowed_ips: List[str] = Field(default_factory=list)
    client_credentials: Optional[str] = None

    def allows(self, client_host: str | None) -> bool:
        if not client_host:
            return False
        try:
            address = ipaddress.ip_address(client_host)
        except ValueError:
            return False
        for allowed in self.allowed_ips:
            try:
                if address in ipaddress.ip_network(allowed, strict=False):
                    return True
            except ValueError:
                logger.warning("Ignoring invalid whitelist entry %r for key %s", allowed, self.name)
        return False


class SecurityConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    api_keys: List[ApiKeyEntry] = Field(default_factory=list)

    def find(self, api_key: str) -> ApiKeyEntry | None:
        for entry in self.api_keys:
            if entry.key == api_key:
                return entry
        return None


@lru_cache(maxsize=4)
def load_security_config(path: str) -> SecurityConfig:
    """Load and cache the security config at ``path``."""
    return SecurityConfig.model_validate_json(Path(path).read_text(encoding="utf-8"))


def authorize(config: SecurityConfig, api_key: str | None, client_host: str | None) -> ApiKeyEntry:
    """Return the matching key entry or raise 401/403."""
    if not api_key:
        raise HTTPException(status_code=401, detail="Missing X-API-KEY header")
    entry = config.find(api_key)
    if entry is None:
        raise HTTPException(status_code=401, detail="Invalid API key")
    if not entry.allows(client_host):
        logger.warning("Rejected request for key %s from non-whitelisted address %s", entry.name, client_host)
        raise HTTPException(status_code=403, detail="Client address not whitelisted")
    return entry


def get_client_credentials(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-KEY"),
    settings: Settings = Depends(get_settings),
) -> ClientCredentials | None:
    """FastAPI dependency resolving the caller's optional relay credentials."""
    if not settings.security_enabled:
        return None

    try:
        config = load_security_config(settings.security_config_path)
    except (OSError, ValidationError) as exc:
        logger.error("Security config %s unusable: %s", settings.security_config_path, exc)
        raise HTTPException(status_code=503, detail="Security configuration unavailable") from exc

    client_host = request.client.host if request.client else None
    entry = authorize(config, x_api_key, client_host)
    if not entry.client_credentials:
        return None
    return ClientCredentials(client_id=entry.name, token=entry.client_credentials)
