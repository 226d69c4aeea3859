from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from klara import CONFIG_PATH
from klara.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Suggestions (args/klara.yaml -> suggestions)
# =============================================================================

class RetryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_retries: int = Field(default=2, ge=0)
    base_delay_seconds: float = Field(default=0.3, ge=0)
    backoff_factor: float = Field(default=3.0, ge=1)
    jitter: float = Field(default=0.2, ge=0.0, le=1.0)


class SuggestionsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    cache_ttl_hours: int = Field(default=24, ge=1)
    max_suggestions: int = Field(default=5, ge=1)
    max_task_text_length: int = Field(default=500, ge=1)
    user_key: str = Field(default="local")
    retry: RetryConfig = Field(default_factory=RetryConfig)


# =============================================================================
# Rate limits (args/klara.yaml -> rate_limits)
# =============================================================================

class BucketConfig(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)
    window_seconds: float = Field(gt=0)
    max_requests: int = Field(ge=1)
    message: str = Field(default="Too many suggestion requests. Please try again later.")


class RateLimitsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    task_short: BucketConfig = Field(
        default_factory=lambda: BucketConfig(
            window_seconds=300,
            max_requests=1,
            message="This task was just broken down. Give it a few minutes before asking again.",
        )
    )
    task_hourly: BucketConfig = Field(
        default_factory=lambda: BucketConfig(
            window_seconds=3600,
            max_requests=3,
            message="This task has had several suggestions this hour. Try again a bit later.",
        )
    )
    user_short: BucketConfig = Field(
        default_factory=lambda: BucketConfig(
            window_seconds=60,
            max_requests=3,
            message="Lots of requests just now. Take a breath and try again in a minute.",
        )
    )
    user_hourly: BucketConfig = Field(
        default_factory=lambda: BucketConfig(
            window_seconds=3600,
            max_requests=10,
            message="You've reached the hourly suggestion limit. Suggestions will be back soon.",
        )
    )


# =============================================================================
# Provider (args/klara.yaml -> provider)
# =============================================================================

class ProviderConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    name: str = Field(default="gemini")
    api_key_env: str = Field(default="GEMINI_API_KEY")
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    primary_model: str = Field(default="gemini-2.5-flash-lite")
    fallback_model: Optional[str] = Field(default="gemini-2.5-flash")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=500, ge=1)
    timeout_seconds: float = Field(default=15.0, gt=0)


# =============================================================================
# Nudges (args/klara.yaml -> nudges)
# =============================================================================

class NudgesConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_badges: int = Field(default=3, ge=0)
    complex_task_length: int = Field(default=50, ge=1)
    long_pending_days: int = Field(default=7, ge=1)
    postpone_threshold: int = Field(default=3, ge=1)
    cooldown_hours: int = Field(default=24, ge=1)
    enabled_rules: list[str] = Field(default_factory=lambda: ["overdue", "needs_breakdown"])


# =============================================================================
# Inference (args/klara.yaml -> inference)
# =============================================================================

class InferenceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    validity_hours: int = Field(default=4, ge=1)
    high_completion_rate: float = Field(default=0.7, ge=0.0, le=1.0)
    low_completion_rate: float = Field(default=0.3, ge=0.0, le=1.0)
    procrastination_days: int = Field(default=7, ge=1)
    procrastination_count: int = Field(default=3, ge=1)
    late_night_start_hour: int = Field(default=23, ge=0, le=23)
    late_night_end_hour: int = Field(default=5, ge=0, le=23)
    complex_task_length: int = Field(default=50, ge=1)


class KlaraConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    suggestions: SuggestionsConfig = Field(default_factory=SuggestionsConfig)
    rate_limits: RateLimitsConfig = Field(default_factory=RateLimitsConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    nudges: NudgesConfig = Field(default_factory=NudgesConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)


# =============================================================================
# load_config
# =============================================================================

def load_config(path: Path | None = None) -> KlaraConfig:
    yaml_path = path or CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return KlaraConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path.name}: {e}, using defaults")
        return KlaraConfig()


__all__ = [
    "BucketConfig",
    "InferenceConfig",
    "KlaraConfig",
    "NudgesConfig",
    "ProviderConfig",
    "RateLimitsConfig",
    "RetryConfig",
    "SuggestionsConfig",
    "load_config",
]
