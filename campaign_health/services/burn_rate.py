"""
Burn-Rate Estimator

Two independent velocity estimates are computed from the same campaign rows:

- Impression burn rate: trailing 1/3/7-day mean impressions with a confidence
  tier. Feeds the burn rate sub-score and the pacing display.
- Spend burn rate: trailing spend velocity checked against the flight-to-date
  daily average. Feeds the overspend projection only.

They are kept separate because they select windows differently: the spend
estimate discards a trailing window that deviates too far from the flight
average and caps the final rate, so a single-day spend spike cannot inflate
the projected overspend.
"""

import logging
from typing import Optional

import pandas as pd

from campaign_health.core.config import ScoringConfig, get_scoring_config
from campaign_health.models.enums import CAPPED_SUFFIX, BurnRateConfidence
from campaign_health.models.schemas import BurnRateData, SpendBurnRate
from campaign_health.services.metrics import METRIC_COLUMNS

logger = logging.getLogger(__name__)

TRAILING_WINDOW_DAYS = 7


def _confidence_for(day_count: int) -> BurnRateConfidence:
    if day_count >= 7:
        return BurnRateConfidence.SEVEN_DAY
    if day_count >= 3:
        return BurnRateConfidence.THREE_DAY
    if day_count >= 1:
        return BurnRateConfidence.ONE_DAY
    return BurnRateConfidence.NO_DATA


def _percentage(rate: float, required_daily_impressions: float) -> float:
    if required_daily_impressions <= 0:
        return 0.0
    return rate / required_daily_impressions * 100


def calculate_burn_rate(
    campaign_rows: pd.DataFrame,
    required_daily_impressions: float = 0.0,
) -> BurnRateData:
    """
    Compute trailing impression velocity for one campaign.

    Args:
        campaign_rows: One campaign's rows sorted by date ascending, as
            returned by metrics.filter_campaign_rows.
        required_daily_impressions: Impressions per day needed to hit the
            goal; used only for the percentage fields.

    Returns:
        BurnRateData. A rate is 0 when fewer trailing rows exist than its
        window needs; confidence is the widest window available.
    """
    impressions = campaign_rows[METRIC_COLUMNS['impressions']].tolist()
    recent = impressions[-TRAILING_WINDOW_DAYS:]
    day_count = len(recent)

    one_day_rate = float(recent[-1]) if day_count >= 1 else 0.0
    three_day_rate = float(sum(recent[-3:])) / 3 if day_count >= 3 else 0.0
    seven_day_rate = float(sum(recent)) / 7 if day_count >= 7 else 0.0

    return BurnRateData(
        oneDayRate=one_day_rate,
        threeDayRate=three_day_rate,
        sevenDayRate=seven_day_rate,
        oneDayPercentage=_percentage(one_day_rate, required_daily_impressions),
        threeDayPercentage=_percentage(three_day_rate, required_daily_impressions),
        sevenDayPercentage=_percentage(seven_day_rate, required_daily_impressions),
        confidence=_confidence_for(day_count),
    )


def select_burn_rate(burn_rate: BurnRateData) -> float:
    """
    Return the impression rate matching the confidence tier.

    Prefers 7-day, then 3-day, then 1-day; 0 when there is no data.
    """
    if burn_rate.confidence == BurnRateConfidence.SEVEN_DAY:
        return burn_rate.sevenDayRate
    if burn_rate.confidence == BurnRateConfidence.THREE_DAY:
        return burn_rate.threeDayRate
    if burn_rate.confidence == BurnRateConfidence.ONE_DAY:
        return burn_rate.oneDayRate
    return 0.0


def calculate_spend_burn_rate(
    campaign_rows: pd.DataFrame,
    total_spend: float,
    days_into_flight: float,
    config: Optional[ScoringConfig] = None,
    log: Optional[logging.Logger] = None,
) -> SpendBurnRate:
    """
    Estimate daily spend velocity with anomaly damping.

    The flight-to-date average (total_spend / days_into_flight) is the
    stability reference. The widest available trailing window (7, 3 or 1
    rows) is used unless it deviates from the reference by more than
    spend_anomaly_multiplier x reference (spend_one_day_anomaly_multiplier
    for the 1-day window), in which case the reference replaces it and the
    window's confidence tag is kept. A rate above spend_cap_multiplier x
    reference is clamped and tagged "-capped".

    Args:
        campaign_rows: One campaign's rows sorted by date ascending.
        total_spend: Campaign spend to date.
        days_into_flight: Elapsed flight days; <= 0 disables the reference.
        config: Scoring policy.
        log: Logger for diagnostics (defaults to the module logger).

    Returns:
        SpendBurnRate with the chosen rate, the reference and the tag.

    Example:
        Six days at $100 then a $10,000 day, with a $100 reference: the 7-day
        mean (~$1,514) deviates by more than $200, so the rate is $100.
    """
    config = config or get_scoring_config()
    log = log or logger

    average_daily_spend = total_spend / days_into_flight if days_into_flight > 0 else 0.0
    spends = campaign_rows[METRIC_COLUMNS['spend']].tolist()
    day_count = len(spends)

    if day_count >= 7:
        window_rate = float(sum(spends[-7:])) / 7
        anomaly_multiplier = config.spend_anomaly_multiplier
    elif day_count >= 3:
        window_rate = float(sum(spends[-3:])) / 3
        anomaly_multiplier = config.spend_anomaly_multiplier
    elif day_count >= 1:
        window_rate = float(spends[-1])
        anomaly_multiplier = config.spend_one_day_anomaly_multiplier
    else:
        window_rate = None
        anomaly_multiplier = 0.0

    if window_rate is None:
        if average_daily_spend > 0:
            daily_spend_rate = average_daily_spend
            confidence = BurnRateConfidence.OVERALL_AVERAGE.value
        else:
            return SpendBurnRate()
    else:
        daily_spend_rate = window_rate
        confidence = _confidence_for(day_count).value
        deviation = abs(window_rate - average_daily_spend)
        if average_daily_spend > 0 and deviation > anomaly_multiplier * average_daily_spend:
            log.debug(
                f"Spend window {confidence} rate {window_rate:.2f} deviates from "
                f"average {average_daily_spend:.2f}; using average"
            )
            daily_spend_rate = average_daily_spend

    capped = False
    ceiling = config.spend_cap_multiplier * average_daily_spend
    if average_daily_spend > 0 and daily_spend_rate > ceiling:
        log.debug(f"Spend rate {daily_spend_rate:.2f} capped at {ceiling:.2f}")
        daily_spend_rate = ceiling
        confidence = f"{confidence}{CAPPED_SUFFIX}"
        capped = True

    return SpendBurnRate(
        dailySpendRate=daily_spend_rate,
        averageDailySpend=average_daily_spend,
        confidence=confidence,
        capped=capped,
    )
