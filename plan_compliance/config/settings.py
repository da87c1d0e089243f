from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", validation_alias="COMPLIANCE_LOG_LEVEL")
    log_file: str | None = Field(
        default=None,
        validation_alias="COMPLIANCE_LOG_FILE",
        description="Optional rotating log file; console only when unset",
    )
    warmup_exclusion_sec: int = Field(
        default=300,
        validation_alias="COMPLIANCE_WARMUP_EXCLUSION_SEC",
        description="Stream samples before this elapsed time are ignored by interval detection",
    )
    default_interval_zone: int = Field(
        default=3,
        validation_alias="COMPLIANCE_DEFAULT_INTERVAL_ZONE",
        description="Target zone for interval sets whose intensity cannot be interpreted",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="COMPLIANCE_",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Unknown COMPLIANCE_LOG_LEVEL '{value}', expected one of {sorted(valid_levels)}. Using INFO.")
            return "INFO"
        return upper_value

    @field_validator("warmup_exclusion_sec")
    @classmethod
    def validate_warmup(cls, value: int) -> int:
        if value < 0:
            logger.warning(f"COMPLIANCE_WARMUP_EXCLUSION_SEC must be >= 0, got {value}. Defaulting to 300.")
            return 300
        return value

    @field_validator("default_interval_zone")
    @classmethod
    def validate_default_zone(cls, value: int) -> int:
        if not 1 <= value <= 5:
            logger.warning(f"COMPLIANCE_DEFAULT_INTERVAL_ZONE must be in 1-5, got {value}. Defaulting to 3.")
            return 3
        return value


settings = Settings()
