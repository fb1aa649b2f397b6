from __future__ import annotations

"""
Client side of the external blockchain relay service.

- base: RelayService protocol, ClientCredentials, RelayServiceError
- http_client: HttpRelayClient, the httpx implementation used in production
"""

from .base import ClientCredentials, RelayService, RelayServiceError  # noqa: F401
from .http_client import HttpRelayClient  # noqa: F401
