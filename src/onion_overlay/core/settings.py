"""Application settings and configuration.

This module defines all configuration options for the onion overlay nodes.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Overlay settings loaded from environment variables.

    Every node (directory, relay, user) derives its listening port from these
    values: ``address = role base port + node id``. Destination fields inside
    onion layers use the same address space, so all nodes of one overlay must
    share the same settings.
    """

    # Application metadata
    app_name: str = Field(default="Onion Overlay", alias="ONION_APP_NAME")
    app_version: str = Field(default="0.1.0", alias="ONION_APP_VERSION")

    # Network layout
    host: str = Field(default="localhost", alias="ONION_HOST")
    directory_port: int = Field(default=8080, alias="ONION_DIRECTORY_PORT")
    relay_base_port: int = Field(default=4000, alias="ONION_RELAY_BASE_PORT")
    recipient_base_port: int = Field(default=3000, alias="ONION_RECIPIENT_BASE_PORT")
    address_span: int = Field(default=1000, alias="ONION_ADDRESS_SPAN")

    # Transport
    http_timeout_seconds: float = Field(default=10.0, alias="ONION_HTTP_TIMEOUT_SECONDS")
    register_on_startup: bool = Field(default=True, alias="ONION_REGISTER_ON_STARTUP")

    # Logging
    log_level: str = Field(default="INFO", alias="ONION_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _check_address_ranges(self) -> "Settings":
        """Reject layouts where relay, recipient and directory addresses collide."""
        if self.address_span <= 0:
            raise ValueError("ONION_ADDRESS_SPAN must be positive")
        relay_end = self.relay_base_port + self.address_span
        recipient_end = self.recipient_base_port + self.address_span
        if self.relay_base_port < recipient_end and self.recipient_base_port < relay_end:
            raise ValueError("Relay and recipient address ranges overlap")
        for base in (self.relay_base_port, self.recipient_base_port):
            if base <= self.directory_port < base + self.address_span:
                raise ValueError("Directory port falls inside a node address range")
        if max(relay_end, recipient_end) > 10**10:
            raise ValueError("Addresses must fit in a 10-digit destination field")
        return self

    @property
    def directory_url(self) -> str:
        """Base URL of the directory service."""
        return f"http://{self.host}:{self.directory_port}"


settings = Settings()
