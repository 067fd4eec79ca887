from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    block_id_attribute: str = Field("blockId", description="Node attribute holding the stable block identifier")
    debounce_ms: int = Field(300, ge=0, description="Delay before staged block changes are flushed")
    max_retries: int = Field(3, ge=1, description="Maximum number of attempts for block store writes")
    retry_backoff_min: float = Field(0.1, ge=0, description="Minimum wait between store write retries in seconds")
    retry_backoff_max: float = Field(2.0, ge=0, description="Maximum wait between store write retries in seconds")
    log_level: str = Field("INFO", description="Root log level")
    environment: str = Field("development", description="Deployment environment")

    model_config = SettingsConfigDict(env_prefix="NOTECARDS_", env_file=".env", env_file_encoding="utf-8")

    @field_validator('block_id_attribute')
    def validate_block_id_attribute(cls, v: str) -> str:
        """
        Validate that the identifier attribute name is usable as a node attribute key.
        """
        if not v or not v.strip():
            raise ValueError("The block identifier attribute name cannot be empty.")
        return v.strip()

    @field_validator('log_level')
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# Create a settings instance
settings = Settings()

# Export settings instance
__all__ = ['Settings', 'settings']
