"""
Connection settings for one execution.

Merges the base configuration with per-query overrides and derives the
Authorization header.
"""

import base64
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from doc_query.core.models import ConnectionInfo, ConnectionOverrides, OpenSearchConfig


class ConnectionSettings(BaseModel):
    """Fully merged connection settings."""

    model_config = ConfigDict(frozen=True)

    endpoint: str
    auth_type: str = "none"
    username: str = ""
    password: str = ""
    api_key: str = ""
    timeout: int = 30000  # milliseconds

    def auth_headers(self) -> Dict[str, str]:
        return build_auth_headers(self)

    def info(self) -> ConnectionInfo:
        return ConnectionInfo(endpoint=self.endpoint, auth_type=self.auth_type)


def merge_connection(
    config: OpenSearchConfig, overrides: Optional[ConnectionOverrides] = None
) -> ConnectionSettings:
    """
    Merge overrides into the base configuration, field by field.

    An override value wins only when it is truthy, so a block that sets just
    a timeout keeps the base endpoint and credentials.

    Args:
        config: Base connection configuration
        overrides: Per-query overrides

    Returns:
        Merged ConnectionSettings
    """
    overrides = overrides or ConnectionOverrides()
    auth = overrides.auth

    def pick(override, base):
        return override if override else base

    return ConnectionSettings(
        endpoint=pick(overrides.endpoint, config.endpoint),
        auth_type=pick(auth and auth.type, config.auth.type),
        username=pick(auth and auth.username, config.auth.username),
        password=pick(auth and auth.password, config.auth.password),
        api_key=pick(auth and auth.api_key, config.auth.api_key),
        timeout=pick(overrides.timeout, config.timeout),
    )


def build_auth_headers(settings: ConnectionSettings) -> Dict[str, str]:
    """
    Build the Authorization header.

    Missing credentials yield no header, which allows anonymous clusters.
    """
    if settings.auth_type == "basic" and settings.username and settings.password:
        token = base64.b64encode(f"{settings.username}:{settings.password}".encode("utf-8"))
        return {"Authorization": f"Basic {token.decode('ascii')}"}

    if settings.auth_type == "apikey" and settings.api_key:
        return {"Authorization": f"ApiKey {settings.api_key}"}

    return {}
