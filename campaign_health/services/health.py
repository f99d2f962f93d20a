"""
Campaign Health Composer

Entry point of the scoring engine. Given a campaign's delivery rows and
whatever contract terms and pacing data are available, it produces one
CampaignHealthResult:

    healthScore = 0.40 x ROAS + 0.30 x delivery pacing + 0.15 x burn rate
                + 0.10 x CTR + 0.05 x overspend risk      (one decimal)

Input resolution, most to least precise:
- Pacing metrics: precomputed metrics from the caller, then metrics computed
  from the campaign's contract terms, then legacy pacing export rows, then none
- Expected impressions: the goal-based curve, then actual / current pacing,
  then actual x pacing_headroom_factor (10% headroom)
- Required daily impressions: remaining average needed, then remaining goal /
  days left, then the campaign's average impressions per row
- Budget: resolved contract terms, else 0 (overspend score 0)

Pacing metrics describe the flight as of their reference date ("yesterday"
for metrics computed from contract terms). Delivery pacing compares the
metrics' own actual impressions with their expected impressions, and the
overspend projection starts from spend through the reference date, so the
partially reported latest day is never counted alongside a full daysLeft.
Malformed precomputed metrics are logged and skipped.

The engine never raises for missing or malformed data. A campaign with no
delivery rows gets the canonical no-data result (all zeros, status "no-data").
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
from pydantic import ValidationError

from campaign_health.core.config import ScoringConfig, get_scoring_config
from campaign_health.models import (
    CampaignHealthResult,
    ContractTerms,
    HealthStatus,
    PacingMetrics,
)
from campaign_health.services.burn_rate import (
    calculate_burn_rate,
    calculate_spend_burn_rate,
    select_burn_rate,
)
from campaign_health.services.contract_terms import (
    RawContractTerms,
    calculate_completion_percentage,
    normalize_contract_terms,
    resolve_contract_terms,
)
from campaign_health.services.metrics import (
    METRIC_COLUMNS,
    PARSED_DATE_COLUMN,
    aggregate_campaign_totals,
    calculate_ctr,
    calculate_roas,
    filter_campaign_rows,
    list_campaign_names,
)
from campaign_health.services.pacing import (
    calculate_campaign_metrics,
    find_legacy_pacing_metrics,
    get_global_reference_date,
)
from campaign_health.services.scoring import (
    calculate_burn_rate_score,
    calculate_ctr_score,
    calculate_delivery_pacing_score,
    calculate_overspend_projection,
    calculate_overspend_score,
    calculate_roas_score,
    calculate_weighted_health_score,
    determine_health_status,
    round_half_up,
)

logger = logging.getLogger(__name__)

DeliveryRows = Sequence[Mapping[str, Any]]
PacingMetricsInput = Union[PacingMetrics, Mapping[str, Any]]


def build_no_data_result(campaign_name: str) -> CampaignHealthResult:
    """
    The canonical result for a campaign with no delivery rows.

    Every total and score is 0, burn-rate confidence is "no-data" and the
    status is NO_DATA so callers can tell it apart from an unhealthy campaign.
    """
    return CampaignHealthResult(campaignName=campaign_name, healthStatus=HealthStatus.NO_DATA)


# =============================================================================
# Input resolution
# =============================================================================


def _resolve_pacing_metrics(
    campaign_name: str,
    rows: DeliveryRows,
    contract_terms: Optional[ContractTerms],
    pacing_data: Optional[Iterable[Mapping[str, Any]]],
    precomputed_pacing_metrics: Optional[PacingMetricsInput],
    log: logging.Logger,
) -> Optional[PacingMetrics]:
    if isinstance(precomputed_pacing_metrics, PacingMetrics):
        return precomputed_pacing_metrics
    if precomputed_pacing_metrics is not None:
        try:
            return PacingMetrics.model_validate(dict(precomputed_pacing_metrics))
        except ValidationError as e:
            log.warning(
                f"Ignoring malformed pacing metrics for '{campaign_name}': "
                f"{e.error_count()} invalid field(s)"
            )

    if contract_terms is not None:
        # Fuzzy matches carry the contract's spelling; delivery rows use ours.
        terms = contract_terms.model_copy(update={'campaignName': campaign_name})
        try:
            return calculate_campaign_metrics(
                terms, rows, get_global_reference_date(rows), log=log
            )
        except ValueError as e:
            log.warning(f"Pacing metrics unavailable for '{campaign_name}': {e}")

    return find_legacy_pacing_metrics(pacing_data, campaign_name)


def _rows_through_reference(
    campaign_rows: pd.DataFrame,
    pacing_metrics: Optional[PacingMetrics],
) -> pd.DataFrame:
    """
    Rows dated on or before the pacing reference date.

    All rows when there is no reference date or no row falls on or before it.
    """
    if pacing_metrics is None or pacing_metrics.referenceDate is None:
        return campaign_rows
    through = campaign_rows[campaign_rows[PARSED_DATE_COLUMN] <= pd.Timestamp(pacing_metrics.referenceDate)]
    return through if not through.empty else campaign_rows


def _pacing_actual_impressions(
    total_impressions: float,
    pacing_metrics: Optional[PacingMetrics],
) -> float:
    # Same window as expectedImpressions when the metrics carry their own actual
    if pacing_metrics is not None and pacing_metrics.actualImpressions is not None:
        return pacing_metrics.actualImpressions
    return total_impressions


def _expected_impressions(
    actual_impressions: float,
    pacing_metrics: Optional[PacingMetrics],
    config: ScoringConfig,
) -> float:
    if pacing_metrics is not None:
        if pacing_metrics.expectedImpressions and pacing_metrics.expectedImpressions > 0:
            return pacing_metrics.expectedImpressions
        if pacing_metrics.currentPacing > 0:
            return actual_impressions / pacing_metrics.currentPacing
    return actual_impressions * config.pacing_headroom_factor


def _required_daily_impressions(
    actual_impressions: float,
    day_count: int,
    pacing_metrics: Optional[PacingMetrics],
    contract_terms: Optional[ContractTerms],
) -> float:
    if pacing_metrics is not None:
        if pacing_metrics.remainingAverageNeeded and pacing_metrics.remainingAverageNeeded > 0:
            return pacing_metrics.remainingAverageNeeded
        if contract_terms is not None and contract_terms.impressionsGoal > 0 and pacing_metrics.daysLeft > 0:
            remaining = max(0.0, contract_terms.impressionsGoal - actual_impressions)
            if remaining > 0:
                return remaining / pacing_metrics.daysLeft
    return actual_impressions / day_count if day_count > 0 else 0.0


# =============================================================================
# Public API
# =============================================================================


def calculate_campaign_health(
    rows: Optional[DeliveryRows],
    campaign_name: str,
    pacing_data: Optional[Iterable[Mapping[str, Any]]] = None,
    contract_terms_data: Optional[Iterable[RawContractTerms]] = None,
    precomputed_pacing_metrics: Optional[PacingMetricsInput] = None,
    *,
    config: Optional[ScoringConfig] = None,
    log: Optional[logging.Logger] = None,
) -> CampaignHealthResult:
    """
    Score one campaign's health.

    Args:
        rows: Delivery rows for any number of campaigns; only rows for
            campaign_name (and not the "Totals" sentinel) are used.
        campaign_name: Campaign to score.
        pacing_data: Legacy pacing export rows ("Days into Flight", "Days Left").
        contract_terms_data: Contract terms in upload or database shape, or
            ContractTerms instances.
        precomputed_pacing_metrics: PacingMetrics (or a mapping of its fields)
            computed by the caller; takes precedence over everything else.
        config: Scoring policy (defaults to the configured policy).
        log: Logger for diagnostics (defaults to this module's logger, which
            emits nothing unless the application configures logging).

    Returns:
        CampaignHealthResult, immutable and recomputed from scratch.

    Example:
        >>> result = calculate_campaign_health(rows, "Spring Tax Push", contract_terms_data=terms)
        >>> result.healthScore, result.healthStatus
        (7.9, <HealthStatus.HEALTHY: 'healthy'>)
    """
    config = config or get_scoring_config()
    log = log or logger
    rows = list(rows or [])

    campaign_rows = filter_campaign_rows(rows, campaign_name)
    if campaign_rows.empty:
        log.debug(f"No delivery rows for '{campaign_name}'")
        return build_no_data_result(campaign_name)

    # -------------------------------------------------------------------------
    # Totals and ratio metrics
    # -------------------------------------------------------------------------
    totals = aggregate_campaign_totals(campaign_rows)
    impressions = totals['impressions']
    spend = totals['spend']
    ctr = calculate_ctr(totals['clicks'], impressions)
    roas = calculate_roas(totals['revenue'], spend)

    roas_score = calculate_roas_score(roas, config)
    ctr_score = calculate_ctr_score(ctr, config=config)

    # -------------------------------------------------------------------------
    # Contract terms and flight progress
    # -------------------------------------------------------------------------
    contract_terms = resolve_contract_terms(contract_terms_data, campaign_name, config, log)
    pacing_metrics = _resolve_pacing_metrics(
        campaign_name, rows, contract_terms, pacing_data, precomputed_pacing_metrics, log
    )
    days_into_flight = pacing_metrics.daysIntoFlight if pacing_metrics is not None else None
    days_left = pacing_metrics.daysLeft if pacing_metrics is not None else None
    budget = contract_terms.budget if contract_terms is not None else None

    # -------------------------------------------------------------------------
    # Delivery pacing and impression burn rate
    # -------------------------------------------------------------------------
    pacing_actual = _pacing_actual_impressions(impressions, pacing_metrics)
    expected_impressions = _expected_impressions(pacing_actual, pacing_metrics, config)
    delivery_pacing_score = calculate_delivery_pacing_score(pacing_actual, expected_impressions, config)
    pace = pacing_actual / expected_impressions * 100 if expected_impressions > 0 else 0.0

    required_daily_impressions = _required_daily_impressions(
        impressions, len(campaign_rows), pacing_metrics, contract_terms
    )
    burn_rate_data = calculate_burn_rate(campaign_rows, required_daily_impressions)
    burn_rate_score = calculate_burn_rate_score(burn_rate_data, required_daily_impressions, config)
    burn_rate = select_burn_rate(burn_rate_data)
    burn_rate_percentage = (
        burn_rate / required_daily_impressions * 100 if required_daily_impressions > 0 else 0.0
    )

    # -------------------------------------------------------------------------
    # Spend burn rate and overspend risk
    # -------------------------------------------------------------------------
    # daysLeft counts from the reference date, so project from spend through it
    spend_rows = _rows_through_reference(campaign_rows, pacing_metrics)
    spend_to_reference = float(spend_rows[METRIC_COLUMNS['spend']].sum())
    spend_reference_days = (
        days_into_flight if days_into_flight else float(len(spend_rows))
    )
    spend_burn_rate = calculate_spend_burn_rate(
        spend_rows, spend_to_reference, spend_reference_days, config, log
    )
    overspend_score = calculate_overspend_score(
        spend_to_reference, budget, spend_burn_rate, days_left, config
    )
    projected_spend, overspend_amount, overspend_percentage = calculate_overspend_projection(
        spend_to_reference, budget, spend_burn_rate.dailySpendRate, days_left
    )

    # -------------------------------------------------------------------------
    # Composite
    # -------------------------------------------------------------------------
    health_score = calculate_weighted_health_score(
        roas_score,
        delivery_pacing_score,
        burn_rate_score,
        ctr_score,
        overspend_score,
        config,
    )
    completion_percentage = (
        calculate_completion_percentage(days_into_flight, days_left)
        if pacing_metrics is not None
        else 0.0
    )

    log.debug(
        f"Health for '{campaign_name}': {health_score} (roas {roas_score}, pacing "
        f"{delivery_pacing_score}, burn {burn_rate_score}, ctr {ctr_score}, "
        f"overspend {overspend_score})"
    )

    return CampaignHealthResult(
        campaignName=campaign_name,
        spend=spend,
        impressions=impressions,
        clicks=totals['clicks'],
        revenue=totals['revenue'],
        transactions=totals['transactions'],
        ctr=ctr,
        roas=roas,
        roasScore=roas_score,
        deliveryPacingScore=delivery_pacing_score,
        burnRateScore=burn_rate_score,
        ctrScore=ctr_score,
        overspendScore=overspend_score,
        healthScore=health_score,
        healthStatus=determine_health_status(health_score, True, config),
        burnRateConfidence=burn_rate_data.confidence,
        burnRateData=burn_rate_data,
        spendBurnRate=spend_burn_rate,
        burnRate=burn_rate,
        burnRatePercentage=burn_rate_percentage,
        requiredDailyImpressions=required_daily_impressions,
        budget=budget,
        daysLeft=days_left,
        daysIntoFlight=days_into_flight,
        completionPercentage=round_half_up(completion_percentage, 1),
        expectedImpressions=expected_impressions,
        pace=pace,
        deliveryPacing=pace,
        projectedSpend=projected_spend,
        overspend=overspend_amount,
        overspendPercentage=overspend_percentage,
    )


def calculate_all_campaign_health(
    rows: Optional[DeliveryRows],
    pacing_data: Optional[Iterable[Mapping[str, Any]]] = None,
    contract_terms_data: Optional[Iterable[RawContractTerms]] = None,
    pacing_metrics_by_campaign: Optional[Mapping[str, PacingMetricsInput]] = None,
    *,
    config: Optional[ScoringConfig] = None,
    log: Optional[logging.Logger] = None,
) -> List[CampaignHealthResult]:
    """
    Score every campaign that has delivery rows, in first-seen order.

    Contract terms are normalized once for the whole batch.
    """
    config = config or get_scoring_config()
    rows = list(rows or [])
    pacing_data = list(pacing_data or [])
    contract_terms = normalize_contract_terms(contract_terms_data, config)
    pacing_metrics_by_campaign = pacing_metrics_by_campaign or {}

    return [
        calculate_campaign_health(
            rows,
            name,
            pacing_data,
            contract_terms,
            pacing_metrics_by_campaign.get(name),
            config=config,
            log=log,
        )
        for name in list_campaign_names(rows)
    ]
