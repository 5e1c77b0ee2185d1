"""Configuration for Setto SDK.

``SettoConfig`` is the immutable value handed to ``initialize``. It can be
built directly or loaded from ``SETTO_*`` environment variables / a ``.env``
file through ``load_settings``.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError, NotInitializedError
from .logging_utils import apply_debug_flag, get_logger
from .types import SettoEnvironment

logger = get_logger(__name__)


class SettoConfig(BaseModel):
    """Process-wide SDK configuration."""

    merchant_id: str = Field(description="Merchant identifier issued by Setto")
    environment: SettoEnvironment = Field(default=SettoEnvironment.PROD)
    idp_token: Optional[str] = Field(default=None, description="IdP token; enables wallet auto-login")
    debug: bool = Field(default=False, description="Verbose SDK logging")
    return_scheme: Optional[str] = Field(
        default=None, description="Custom URL scheme the wallet redirects back to"
    )

    model_config = {"frozen": True}

    @field_validator("merchant_id")
    @classmethod
    def _merchant_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("merchant_id must not be empty")
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _parse_environment(cls, value):
        return SettoEnvironment.parse(value)

    @property
    def base_url(self) -> str:
        return self.environment.base_url


class SettoSettings(BaseSettings):
    """SDK settings read from ``SETTO_*`` environment variables."""

    merchant_id: str = Field(default="")
    environment: str = Field(default="prod")
    idp_token: Optional[str] = Field(default=None)
    debug: bool = Field(default=False)
    return_scheme: Optional[str] = Field(default=None)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="text")

    model_config = SettingsConfigDict(
        env_prefix="SETTO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def to_config(self) -> SettoConfig:
        """Build a ``SettoConfig``.

        Raises:
            ConfigError: If the merchant id is missing or a value is invalid.
        """
        if not self.merchant_id:
            raise ConfigError("SETTO_MERCHANT_ID must be set")
        try:
            return SettoConfig(
                merchant_id=self.merchant_id,
                environment=self.environment,
                idp_token=self.idp_token or None,
                debug=self.debug,
                return_scheme=self.return_scheme or None,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid Setto configuration: {e}") from e


def load_settings(env_file: Optional[str] = ".env") -> SettoSettings:
    """Load settings from the environment and, if given, ``env_file``.

    Process environment variables win over values in the file. The file is
    read without exporting anything into ``os.environ``.
    """
    return SettoSettings(_env_file=env_file)


class ConfigurationStore:
    """Holds the active ``SettoConfig``.

    ``initialize`` replaces any previous value wholesale; there is no merge.
    """

    def __init__(self, config: Optional[SettoConfig] = None):
        self._config: Optional[SettoConfig] = None
        if config is not None:
            self.initialize(config)

    def initialize(self, config: SettoConfig) -> None:
        self._config = config
        apply_debug_flag(config.debug)
        logger.debug(
            f"Initialized with merchant_id={config.merchant_id} "
            f"environment={config.environment.value}"
        )

    @property
    def is_initialized(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> Optional[SettoConfig]:
        return self._config

    def require(self) -> SettoConfig:
        """Return the active config.

        Raises:
            NotInitializedError: If ``initialize`` was never called.
        """
        if self._config is None:
            raise NotInitializedError()
        return self._config
