"""Process configuration for the HostBill MCP server.

Configuration is read from environment variables once at startup. HostBill
credentials are held as ``SecretStr`` so they never show up in reprs, logs
or tool schemas.

Environment Variables:
    HOSTBILL_URL: Base URL of the HostBill instance (required)
    HOSTBILL_API_ID: API id (required)
    HOSTBILL_API_KEY: API key (required)
    HOSTBILL_MCP_SERVER_NAME: Server name reported in initialize
    HOSTBILL_MCP_TOOL_THRESHOLD: Method count above which meta-tools are used
    HOSTBILL_MCP_CACHE_TTL: Discovery cache TTL in seconds
    HOSTBILL_MCP_HTTP_TIMEOUT: HostBill request timeout in seconds
    HOSTBILL_MCP_INVOKE_TIMEOUT: Per tool call timeout in seconds (unset = none)

Example:
    >>> config = ServerConfig.from_env()
    >>> config.tool_threshold
    50
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from hostbill_mcp.errors import ConfigurationError

# Environment variable names
ENV_URL = "HOSTBILL_URL"
ENV_API_ID = "HOSTBILL_API_ID"
ENV_API_KEY = "HOSTBILL_API_KEY"
ENV_SERVER_NAME = "HOSTBILL_MCP_SERVER_NAME"
ENV_TOOL_THRESHOLD = "HOSTBILL_MCP_TOOL_THRESHOLD"
ENV_CACHE_TTL = "HOSTBILL_MCP_CACHE_TTL"
ENV_HTTP_TIMEOUT = "HOSTBILL_MCP_HTTP_TIMEOUT"
ENV_INVOKE_TIMEOUT = "HOSTBILL_MCP_INVOKE_TIMEOUT"

REQUIRED_ENV_VARS: dict[str, str] = {
    ENV_URL: "Your HostBill instance URL",
    ENV_API_ID: "Your API ID",
    ENV_API_KEY: "Your API Key",
}

DEFAULT_SERVER_NAME = "hostbill-mcp-server"
# Above this many discovered methods the server switches to meta-tools
DEFAULT_TOOL_THRESHOLD = 50
DEFAULT_CACHE_TTL = 300.0
DEFAULT_HTTP_TIMEOUT = 30.0


class ServerConfig(BaseModel):
    """Validated server configuration.

    Attributes:
        hostbill_url: HostBill base URL without trailing slash.
        api_id: HostBill API id.
        api_key: HostBill API key.
        server_name: Name reported to MCP clients.
        tool_threshold: Direct mode is used while method count <= threshold.
        cache_ttl: Seconds a discovery result stays fresh.
        http_timeout: Seconds before a HostBill request is abandoned.
        invoke_timeout: Seconds before a tool call is abandoned (None = no limit).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    hostbill_url: str = Field(min_length=1)
    api_id: SecretStr
    api_key: SecretStr
    server_name: str = Field(default=DEFAULT_SERVER_NAME, min_length=1)
    tool_threshold: int = Field(default=DEFAULT_TOOL_THRESHOLD, ge=0)
    cache_ttl: float = Field(default=DEFAULT_CACHE_TTL, ge=0)
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    invoke_timeout: float | None = Field(default=None, gt=0)

    @field_validator("hostbill_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (for tests).

        Raises:
            ConfigurationError: If a required variable is unset or a value is invalid.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name, "").strip()]
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing),
                missing=missing,
            )

        values: dict[str, object] = {
            "hostbill_url": env[ENV_URL],
            "api_id": env[ENV_API_ID].strip(),
            "api_key": env[ENV_API_KEY].strip(),
        }
        optional = {
            ENV_SERVER_NAME: "server_name",
            ENV_TOOL_THRESHOLD: "tool_threshold",
            ENV_CACHE_TTL: "cache_ttl",
            ENV_HTTP_TIMEOUT: "http_timeout",
            ENV_INVOKE_TIMEOUT: "invoke_timeout",
        }
        for env_name, field_name in optional.items():
            raw = env.get(env_name, "").strip()
            if raw:
                values[field_name] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {errors}") from e
