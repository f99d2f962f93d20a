"""
Settings and scoring policy configuration for the Campaign Health service.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files, plus
the ScoringConfig model that holds every band boundary, weight and multiplier used
by the health scoring engine.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- One frozen policy object for all scoring constants, so banding can be tuned
  and tested independently of the aggregation math

Environment Variables:
- LOG_LEVEL: Root log level for the API process (default: INFO)
- API_TITLE: Title shown in the OpenAPI docs
- CORS_ORIGINS: Allowed dashboard origins
- CTR_BENCHMARK: CTR benchmark in percent units (default: 0.5)
- PACING_HEADROOM_FACTOR: Expected/actual ratio assumed without a goal (default: 1.1)
- SPEND_ANOMALY_MULTIPLIER: 3/7-day spend deviation limit (default: 2.0)
- SPEND_ONE_DAY_ANOMALY_MULTIPLIER: 1-day spend deviation limit (default: 3.0)
- SPEND_CAP_MULTIPLIER: Ceiling on daily spend rate vs overall average (default: 2.0)

Usage:
    from campaign_health.core.config import get_scoring_config

    config = get_scoring_config()
    config.roas_weight
"""

import math
from functools import lru_cache
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Band tables are (threshold, score) pairs for step functions and
# (low, high, score) triples for closed intervals, evaluated in order.
ThresholdBand = Tuple[float, float]
IntervalBand = Tuple[float, float, float]


class ScoringConfig(BaseModel):
    """
    Scoring policy for the campaign health engine.

    Every constant that encodes product policy lives here. The defaults reproduce
    the dashboard's scoring exactly; they are not approximations.

    Attributes:
        roas_weight: Weight of the ROAS sub-score in the health score.
        delivery_pacing_weight: Weight of the delivery pacing sub-score.
        burn_rate_weight: Weight of the burn rate sub-score.
        ctr_weight: Weight of the CTR sub-score.
        overspend_weight: Weight of the overspend risk sub-score.
        roas_bands: Step table of (minimum ROAS, score), highest first.
        roas_positive_score: Score for any ROAS above 0 below the lowest band.
        pacing_bands: Nested closed pacing-percentage intervals, innermost first.
        pacing_outside_score: Score when pacing falls outside every interval.
        burn_rate_bands: Nested closed burn ratio intervals, innermost first.
        burn_rate_outside_score: Score when the burn ratio is outside every interval.
        ctr_benchmark: Benchmark CTR in percent units (0.5 means 0.5%).
        ctr_tolerance: Relative deviation treated as "at benchmark".
        ctr_above_score / ctr_within_score / ctr_below_score: CTR band scores.
        overspend_bands: Step table of (maximum overspend %, score), lowest first.
        confidence_multipliers: Overspend score multiplier per spend confidence tag.
        capped_multiplier: Extra multiplier when the spend rate was capped.
        pacing_headroom_factor: Expected impressions = actual x factor when no goal is known.
        spend_anomaly_multiplier: Max deviation (x overall average) for 3/7-day windows.
        spend_one_day_anomaly_multiplier: Max deviation for the 1-day window.
        spend_cap_multiplier: Ceiling on the chosen daily spend rate.
        budget_plausible_range: Range for the last-resort budget field heuristic.
        healthy_threshold / warning_threshold: Health status cut-offs.
    """
    model_config = ConfigDict(frozen=True)

    # =========================================================================
    # Composite weights
    # =========================================================================

    roas_weight: float = 0.40
    delivery_pacing_weight: float = 0.30
    burn_rate_weight: float = 0.15
    ctr_weight: float = 0.10
    overspend_weight: float = 0.05

    # =========================================================================
    # Sub-score band tables
    # =========================================================================

    roas_bands: Tuple[ThresholdBand, ...] = (
        (4.0, 10.0),
        (3.0, 7.5),
        (2.0, 5.0),
        (1.0, 2.5),
    )
    roas_positive_score: float = 1.0

    pacing_bands: Tuple[IntervalBand, ...] = (
        (95.0, 105.0, 10.0),
        (90.0, 110.0, 8.0),
        (80.0, 120.0, 6.0),
    )
    pacing_outside_score: float = 3.0

    burn_rate_bands: Tuple[IntervalBand, ...] = (
        (0.95, 1.05, 10.0),
        (0.85, 1.15, 8.0),
    )
    burn_rate_outside_score: float = 5.0

    ctr_benchmark: float = 0.5
    ctr_tolerance: float = 0.10
    ctr_above_score: float = 10.0
    ctr_within_score: float = 8.0
    ctr_below_score: float = 5.0

    overspend_bands: Tuple[ThresholdBand, ...] = (
        (0.0, 10.0),
        (5.0, 8.0),
        (10.0, 6.0),
        (20.0, 3.0),
    )
    confidence_multipliers: Dict[str, float] = {
        "7-day": 1.0,
        "3-day": 0.8,
        "1-day": 0.6,
        "overall-average": 0.9,
    }
    capped_multiplier: float = 0.7

    # =========================================================================
    # Estimation heuristics
    # =========================================================================

    pacing_headroom_factor: float = 1.1
    spend_anomaly_multiplier: float = 2.0
    spend_one_day_anomaly_multiplier: float = 3.0
    spend_cap_multiplier: float = 2.0
    budget_plausible_range: Tuple[float, float] = (100.0, 1_000_000.0)

    # =========================================================================
    # Health status
    # =========================================================================

    healthy_threshold: float = 7.0
    warning_threshold: float = 4.0

    @property
    def weights(self) -> List[float]:
        """Composite weights in sub-score order: roas, pacing, burn, ctr, overspend."""
        return [
            self.roas_weight,
            self.delivery_pacing_weight,
            self.burn_rate_weight,
            self.ctr_weight,
            self.overspend_weight,
        ]

    @model_validator(mode="after")
    def _check_weights(self) -> "ScoringConfig":
        total = sum(self.weights)
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Health score weights must sum to 1.0, got {total}")
        return self


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The class inherits from pydantic-settings BaseSettings which provides:
    - Automatic loading from environment variables (case-insensitive)
    - Support for .env file loading
    - Type validation and coercion
    - Default values for every setting (the engine needs no credentials)
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service
    # =========================================================================

    log_level: str = 'INFO'
    api_title: str = 'Campaign Health API'
    cors_origins: List[str] = [
        'http://localhost:5173',  # Vite dev server
        'http://localhost:3000',
    ]

    # =========================================================================
    # Scoring overrides (everything else uses ScoringConfig defaults)
    # =========================================================================

    # Benchmark CTR in percent units; deviation is measured relative to it
    ctr_benchmark: float = 0.5

    # Used when the campaign has no impression goal: expected = actual x factor
    pacing_headroom_factor: float = 1.1

    # Spend anomaly damping: trailing window discarded when it deviates from the
    # overall daily average by more than multiplier x average
    spend_anomaly_multiplier: float = 2.0
    spend_one_day_anomaly_multiplier: float = 3.0
    spend_cap_multiplier: float = 2.0


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The cached settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()


@lru_cache()
def get_scoring_config() -> ScoringConfig:
    """
    Build the scoring policy from the cached settings.

    Returns:
        ScoringConfig with the environment overrides applied.
    """
    settings = get_settings()
    return ScoringConfig(
        ctr_benchmark=settings.ctr_benchmark,
        pacing_headroom_factor=settings.pacing_headroom_factor,
        spend_anomaly_multiplier=settings.spend_anomaly_multiplier,
        spend_one_day_anomaly_multiplier=settings.spend_one_day_anomaly_multiplier,
        spend_cap_multiplier=settings.spend_cap_multiplier,
    )
