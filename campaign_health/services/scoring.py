"""
Sub-Score Calculators

Each function maps one continuous campaign metric onto a discrete score band
using the tables in ScoringConfig, and the composite health score is their
weighted sum. The bands encode product policy: they are step functions with no
interpolation, and the CTR score deliberately has only three non-zero levels.

Sub-scores and weights (defaults):
- ROAS (40%): >=4.0 -> 10, >=3.0 -> 7.5, >=2.0 -> 5, >=1.0 -> 2.5, >0 -> 1, else 0
- Delivery pacing (30%): [95,105] -> 10, [90,110] -> 8, [80,120] -> 6, else 3
- Burn rate (15%): ratio [0.95,1.05] -> 10, [0.85,1.15] -> 8, else 5
- CTR (10%): deviation from benchmark >10% -> 10, within +/-10% -> 8, below -> 5
- Overspend risk (5%): 0% -> 10, <=5% -> 8, <=10% -> 6, <=20% -> 3, else 0,
  scaled by the spend estimate's confidence

Every function returns 0 rather than raising when its inputs make the metric
undefined (zero denominators, missing budget, no data).
"""

import math
from typing import Optional, Tuple

from campaign_health.core.config import ScoringConfig, get_scoring_config
from campaign_health.models.enums import CAPPED_SUFFIX, BurnRateConfidence, HealthStatus
from campaign_health.models.schemas import BurnRateData, SpendBurnRate
from campaign_health.services.burn_rate import select_burn_rate


def round_half_up(value: float, digits: int = 1) -> float:
    """
    Round half away from zero for positive values, like ``Math.round(x*10)/10``.

    Python's round() uses banker's rounding, which would move scores such as
    7.25 to 7.2 where the dashboard shows 7.3. Non-finite values become 0.
    """
    if value is None or not math.isfinite(value):
        return 0.0
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# =============================================================================
# Individual Sub-Scores
# =============================================================================


def calculate_roas_score(roas: float, config: Optional[ScoringConfig] = None) -> float:
    """
    Score return on ad spend.

    Args:
        roas: Revenue / spend ratio.
        config: Scoring policy (defaults to the configured policy).

    Returns:
        Score from the ROAS step table; 0 for zero, negative or undefined ROAS.
    """
    config = config or get_scoring_config()
    for threshold, score in config.roas_bands:
        if roas >= threshold:
            return score
    if roas > 0:
        return config.roas_positive_score
    return 0.0


def calculate_delivery_pacing_score(
    actual_impressions: float,
    expected_impressions: float,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Score delivered impressions against the expected delivery curve.

    Pacing percent = actual / expected x 100. The intervals are nested and
    closed, so checking them innermost first reproduces the half-open bands
    [90,95) / (105,110] etc.

    Returns:
        Band score; 0 when expected_impressions is 0.
    """
    config = config or get_scoring_config()
    if expected_impressions == 0:
        return 0.0

    pacing_percent = actual_impressions / expected_impressions * 100
    if not math.isfinite(pacing_percent):
        return 0.0

    for low, high, score in config.pacing_bands:
        if low <= pacing_percent <= high:
            return score
    return config.pacing_outside_score


def calculate_burn_rate_score(
    burn_rate: BurnRateData,
    required_daily_impressions: float,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Score the trailing impression velocity against the required daily rate.

    The rate used is the one matching the burn-rate confidence tier
    (7-day, then 3-day, then 1-day).

    Returns:
        Band score; 0 when no rate is available or the requirement is unknown.
    """
    config = config or get_scoring_config()
    if required_daily_impressions == 0:
        return 0.0
    if burn_rate.confidence not in (
        BurnRateConfidence.SEVEN_DAY,
        BurnRateConfidence.THREE_DAY,
        BurnRateConfidence.ONE_DAY,
    ):
        return 0.0

    ratio = select_burn_rate(burn_rate) / required_daily_impressions
    for low, high, score in config.burn_rate_bands:
        if low <= ratio <= high:
            return score
    return config.burn_rate_outside_score


def calculate_ctr_score(
    ctr: float,
    benchmark: Optional[float] = None,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Score click-through rate by relative deviation from a benchmark.

    Args:
        ctr: Click-through rate in percent units.
        benchmark: Benchmark CTR in percent units (default from config, 0.5).
        config: Scoring policy.

    Returns:
        10 above the tolerance, 8 within it, 5 below it; 0 when ctr or the
        benchmark is 0.
    """
    config = config or get_scoring_config()
    if benchmark is None:
        benchmark = config.ctr_benchmark
    if ctr == 0 or benchmark == 0:
        return 0.0

    deviation = (ctr - benchmark) / benchmark
    tolerance = config.ctr_tolerance
    if deviation > tolerance:
        return config.ctr_above_score
    if -tolerance <= deviation <= tolerance:
        return config.ctr_within_score
    return config.ctr_below_score


def calculate_overspend_projection(
    spend: float,
    budget: Optional[float],
    daily_spend_rate: float,
    days_left: Optional[float],
) -> Tuple[float, float, float]:
    """
    Project end-of-flight spend and the overspend it implies.

    projected = spend + daily_spend_rate x max(0, days_left)

    Returns:
        Tuple of (projected spend, overspend amount, overspend percent of
        budget). Overspend and percent are 0 without a positive budget.
    """
    remaining_days = max(0.0, days_left) if days_left is not None else 0.0
    projected_spend = spend + daily_spend_rate * remaining_days
    if budget is None or budget <= 0:
        return projected_spend, 0.0, 0.0

    overspend_amount = max(0.0, projected_spend - budget)
    overspend_percentage = overspend_amount / budget * 100
    return projected_spend, overspend_amount, overspend_percentage


def calculate_overspend_score(
    spend: float,
    budget: Optional[float],
    spend_burn_rate: SpendBurnRate,
    days_left: Optional[float],
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Score the risk of finishing the flight over budget.

    The band score is scaled by how trustworthy the spend rate is: 1.0 for a
    7-day rate down to 0.6 for a single day, 0.9 for the flight average, and a
    further 0.7 when the rate had to be capped.

    Args:
        spend: Spend to date.
        budget: Contracted budget; None or <= 0 means no judgement possible.
        spend_burn_rate: Output of calculate_spend_burn_rate.
        days_left: Days remaining in the flight; None when unknown, negative
            when the flight is already over.
        config: Scoring policy.

    Returns:
        Score rounded to one decimal; 0 without a budget or a live flight.
    """
    config = config or get_scoring_config()
    if budget is None or budget <= 0:
        return 0.0
    if days_left is None or days_left < 0:
        return 0.0

    _, _, overspend_percentage = calculate_overspend_projection(
        spend, budget, spend_burn_rate.dailySpendRate, days_left
    )

    band_score = 0.0
    for max_percentage, score in config.overspend_bands:
        if overspend_percentage <= max_percentage:
            band_score = score
            break

    base_confidence = spend_burn_rate.confidence.removesuffix(CAPPED_SUFFIX)
    multiplier = config.confidence_multipliers.get(base_confidence, 0.0)
    if spend_burn_rate.capped:
        multiplier *= config.capped_multiplier

    return round_half_up(band_score * multiplier, 1)


# =============================================================================
# Composite
# =============================================================================


def calculate_weighted_health_score(
    roas_score: float,
    delivery_pacing_score: float,
    burn_rate_score: float,
    ctr_score: float,
    overspend_score: float,
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Combine the five sub-scores into the 0-10 health score (one decimal).
    """
    config = config or get_scoring_config()
    weighted = (
        roas_score * config.roas_weight
        + delivery_pacing_score * config.delivery_pacing_weight
        + burn_rate_score * config.burn_rate_weight
        + ctr_score * config.ctr_weight
        + overspend_score * config.overspend_weight
    )
    return round_half_up(weighted, 1)


def determine_health_status(
    health_score: float,
    has_data: bool = True,
    config: Optional[ScoringConfig] = None,
) -> HealthStatus:
    """
    Map a health score to a display status.

    Args:
        health_score: Composite score.
        has_data: False when the campaign had no delivery rows.
        config: Scoring policy.

    Returns:
        HealthStatus; NO_DATA whenever has_data is False.
    """
    config = config or get_scoring_config()
    if not has_data:
        return HealthStatus.NO_DATA
    if health_score >= config.healthy_threshold:
        return HealthStatus.HEALTHY
    if health_score >= config.warning_threshold:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL
