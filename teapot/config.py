"""Client configuration.

``TeapotConfig`` gathers the settings fixed at client construction. It can
be built directly or read from ``TEAPOT_*`` environment variables.
"""

import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from teapot.wire_log import LogLevel

ENV_PREFIX = "TEAPOT_"


class TeapotConfig(BaseModel):
    """Settings for a Teapot client.

    Attributes:
        base_url: Absolute http(s) URL every request path is appended to.
        timeout: Default request timeout in seconds.
        allow_cellular: Default for whether requests may use metered links.
        log_level: How much wire traffic to log.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(..., description="Base URL for all requests")
    timeout: float = Field(5.0, gt=0, description="Default timeout in seconds")
    allow_cellular: bool = Field(True, description="Allow metered networks by default")
    log_level: LogLevel = Field(LogLevel.NONE, description="Wire log level")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v: object) -> LogLevel:
        if isinstance(v, (str, int)):
            return LogLevel.parse(v)
        return v  # type: ignore[return-value]

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> "TeapotConfig":
        """Read settings from environment variables.

        Reads ``{prefix}BASE_URL`` (required), ``{prefix}TIMEOUT``,
        ``{prefix}ALLOW_CELLULAR`` and ``{prefix}LOG_LEVEL``. Unset variables
        fall back to the field defaults.

        Raises:
            pydantic.ValidationError: If a value is missing or invalid.
        """
        source = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for field_name in cls.model_fields:
            key = f"{prefix}{field_name.upper()}"
            if key in source:
                values[field_name] = source[key]
        return cls(**values)
