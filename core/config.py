"""
Application settings - project configuration management
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentPolicySettings(BaseModel):
    vip_discount_rate: Decimal = Decimal("0.10")
    regular_discount_rate: Decimal = Decimal("0.05")
    tax_rate: Decimal = Decimal("0.10")
    # Approval knobs (per-country policies are built from these)
    vip_max_attempts: int = Field(default=3, ge=1)
    us_high_value_threshold: Decimal = Decimal("100000")
    retry_backoff_seconds: float = Field(default=0.0, ge=0.0)

    @field_validator("vip_discount_rate", "regular_discount_rate", "tax_rate")
    @classmethod
    def _validate_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v >= 1:
            raise ValueError("rate must be within [0, 1)")
        return v


class ApprovalSimulatorSettings(BaseModel):
    card_limit: Decimal = Decimal("50000")
    network_error_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    seed: Optional[int] = None


class NotificationSettings(BaseModel):
    # No URL -> failure alerts go to the structured log only
    webhook_url: Optional[str] = None
    timeout_seconds: float = 3.0


class Settings(BaseSettings):
    """Project settings"""

    PROJECT_NAME: str = Field(default="Payment Approval Engine")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    payment: PaymentPolicySettings = Field(default_factory=PaymentPolicySettings)
    approval: ApprovalSimulatorSettings = Field(default_factory=ApprovalSimulatorSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


settings = Settings()
