"""
Pacing Calculations

Derives flight progress and delivery pacing for campaigns with complete
contract terms (flight dates, budget, CPM, impression goal). The health engine
consumes the resulting metrics for completion percentage, days left, the true
expected-impressions curve and the required daily impressions.

Reference date:
All calculations are anchored on "yesterday", the second most recent date the
campaign has delivery for. The most recent day is usually partially reported,
so scoring against it would understate delivery. With a single delivery date
that date is used; with none, the global reference date across all campaigns
(or today) is used.

Formulas:
- total days = end - start + 1 (inclusive)
- days into flight = reference - start + 1, clamped to [0, total days]
- days left = max(0, end - reference)
- expected impressions = goal / total days x days into flight
- current pacing = actual impressions through the reference date / expected
- remaining average needed = max(0, goal - actual) / days left
"""

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from campaign_health.core.config import ScoringConfig
from campaign_health.models import (
    CampaignPacingMetrics,
    ContractTerms,
    PacingMetrics,
    ProcessedCampaign,
)
from campaign_health.services.contract_terms import (
    RawContractTerms,
    normalize_contract_terms,
    parse_number,
)
from campaign_health.services.dates import parse_delivery_date
from campaign_health.services.metrics import (
    CAMPAIGN_COLUMN,
    DATE_COLUMN,
    METRIC_COLUMNS,
    PARSED_DATE_COLUMN,
    filter_campaign_rows,
)

logger = logging.getLogger(__name__)

# Legacy pacing export columns
LEGACY_NAME_COLUMNS = ('Campaign Name', CAMPAIGN_COLUMN)
LEGACY_DAYS_INTO_FLIGHT = 'Days into Flight'
LEGACY_DAYS_LEFT = 'Days Left'


def _yesterday_from(dates: Iterable[date]) -> Optional[date]:
    ordered = sorted(set(dates), reverse=True)
    if len(ordered) >= 2:
        return ordered[1]
    if ordered:
        return ordered[0]
    return None


def get_global_reference_date(rows: Iterable[Mapping[str, Any]]) -> date:
    """
    Reference date across every campaign: the second most recent delivery
    date, the only date when there is one, or today when there are none.
    """
    dates = [
        parsed
        for parsed in (parse_delivery_date(row.get(DATE_COLUMN)) for row in rows)
        if parsed is not None
    ]
    return _yesterday_from(dates) or date.today()


def calculate_campaign_metrics(
    contract_terms: ContractTerms,
    rows: Sequence[Mapping[str, Any]],
    global_reference_date: Optional[date] = None,
    unfiltered_rows: Optional[Sequence[Mapping[str, Any]]] = None,
    log: Optional[logging.Logger] = None,
) -> CampaignPacingMetrics:
    """
    Compute pacing metrics for one campaign.

    Args:
        contract_terms: Canonical contract terms for the campaign.
        rows: Delivery rows (possibly date-filtered by the dashboard).
        global_reference_date: Fallback reference when the campaign has no
            dated rows.
        unfiltered_rows: Full delivery history; when given, actual and
            yesterday impressions come from it so a dashboard date filter
            does not distort pacing.
        log: Logger for diagnostics (defaults to the module logger).

    Returns:
        CampaignPacingMetrics.

    Raises:
        ValueError: If budget, CPM or impression goal is missing, a flight
            date is missing, or the end date precedes the start date.
    """
    log = log or logger
    name = contract_terms.campaignName

    if contract_terms.budget <= 0 or contract_terms.cpm <= 0 or contract_terms.impressionsGoal <= 0:
        raise ValueError(f"Missing required fields in contract terms for '{name}'")
    if contract_terms.startDate is None or contract_terms.endDate is None:
        raise ValueError(f"Missing flight dates in contract terms for '{name}'")

    start_date = contract_terms.startDate
    end_date = contract_terms.endDate
    total_campaign_days = (end_date - start_date).days + 1
    if total_campaign_days <= 0:
        raise ValueError(f"End date {end_date} precedes start date {start_date} for '{name}'")

    campaign_rows = filter_campaign_rows(rows, name)
    delivery_dates = campaign_rows[PARSED_DATE_COLUMN].dropna().dt.date
    reference_date = _yesterday_from(delivery_dates) or global_reference_date or date.today()

    days_into_flight = max(0, min((reference_date - start_date).days + 1, total_campaign_days))
    days_left = max(0, (end_date - reference_date).days)

    impression_goal = contract_terms.impressionsGoal
    average_daily_impressions = impression_goal / total_campaign_days
    expected_impressions = average_daily_impressions * days_into_flight

    history = filter_campaign_rows(unfiltered_rows, name) if unfiltered_rows is not None else campaign_rows
    reference_ts = pd.Timestamp(reference_date)
    impressions_column = METRIC_COLUMNS['impressions']
    through_reference = history[history[PARSED_DATE_COLUMN] <= reference_ts]
    actual_impressions = float(through_reference[impressions_column].sum())

    current_pacing = actual_impressions / expected_impressions if expected_impressions > 0 else 0.0
    if current_pacing == 0 and actual_impressions > 0:
        log.debug(
            f"Zero pacing for '{name}': reference {reference_date}, expected "
            f"{expected_impressions}, actual {actual_impressions}, days into flight "
            f"{days_into_flight} of {total_campaign_days}"
        )

    remaining_impressions = max(0.0, impression_goal - actual_impressions)
    remaining_average_needed = remaining_impressions / days_left if days_left > 0 else 0.0

    yesterday_rows = history[history[PARSED_DATE_COLUMN] == reference_ts]
    yesterday_impressions = (
        float(yesterday_rows[impressions_column].iloc[0]) if not yesterday_rows.empty else 0.0
    )
    yesterday_vs_needed = (
        yesterday_impressions / remaining_average_needed if remaining_average_needed > 0 else 0.0
    )

    return CampaignPacingMetrics(
        campaignName=name,
        budget=contract_terms.budget,
        cpm=contract_terms.cpm,
        impressionGoal=impression_goal,
        startDate=start_date,
        endDate=end_date,
        referenceDate=reference_date,
        totalCampaignDays=total_campaign_days,
        daysIntoFlight=days_into_flight,
        daysLeft=days_left,
        averageDailyImpressions=average_daily_impressions,
        expectedImpressions=expected_impressions,
        actualImpressions=actual_impressions,
        currentPacing=current_pacing,
        remainingImpressions=remaining_impressions,
        remainingAverageNeeded=remaining_average_needed,
        yesterdayImpressions=yesterday_impressions,
        yesterdayVsNeeded=yesterday_vs_needed,
    )


def process_campaigns(
    contract_terms_data: Iterable[RawContractTerms],
    rows: Sequence[Mapping[str, Any]],
    unfiltered_rows: Optional[Sequence[Mapping[str, Any]]] = None,
    config: Optional[ScoringConfig] = None,
    log: Optional[logging.Logger] = None,
) -> List[ProcessedCampaign]:
    """
    Compute pacing metrics for every campaign with contract terms.

    Campaigns without delivery rows, or whose contract terms are unusable,
    are skipped and logged rather than failing the batch.

    Args:
        contract_terms_data: Raw contract terms rows (upload or database shape).
        rows: Delivery rows.
        unfiltered_rows: Full delivery history for the global reference date
            and actual impressions.
        config: Scoring policy (for budget resolution).
        log: Logger for diagnostics.

    Returns:
        ProcessedCampaign list in contract terms order.
    """
    log = log or logger
    global_reference_date = get_global_reference_date(
        unfiltered_rows if unfiltered_rows is not None else rows
    )
    log.info(f"Global reference date: {global_reference_date.isoformat()}")

    processed: List[ProcessedCampaign] = []
    skipped: List[str] = []

    for terms in normalize_contract_terms(contract_terms_data, config):
        campaign_rows = filter_campaign_rows(rows, terms.campaignName)
        if campaign_rows.empty:
            log.info(f"Skipping campaign '{terms.campaignName}' - no delivery data found")
            skipped.append(terms.campaignName)
            continue

        try:
            metrics = calculate_campaign_metrics(
                terms, rows, global_reference_date, unfiltered_rows, log=log
            )
        except ValueError as e:
            log.warning(f"Skipping campaign '{terms.campaignName}': {e}")
            skipped.append(terms.campaignName)
            continue

        processed.append(ProcessedCampaign(
            name=terms.campaignName,
            contractTerms=terms,
            deliveryRowCount=len(campaign_rows),
            metrics=metrics,
        ))

    if skipped:
        log.info(
            f"Processed {len(processed)} campaigns, skipped {len(skipped)}: {', '.join(skipped)}"
        )
    return processed


def find_legacy_pacing_metrics(
    pacing_data: Optional[Iterable[Mapping[str, Any]]],
    campaign_name: str,
) -> Optional[PacingMetrics]:
    """
    Read flight progress from a legacy pacing export row.

    Rows are matched on "Campaign Name" or "CAMPAIGN ORDER NAME" and carry
    "Days into Flight" and "Days Left".

    Returns:
        PacingMetrics with currentPacing 0, or None when no row matches.
    """
    for row in pacing_data or []:
        if any(row.get(column) == campaign_name for column in LEGACY_NAME_COLUMNS):
            return PacingMetrics(
                daysIntoFlight=max(0.0, parse_number(row.get(LEGACY_DAYS_INTO_FLIGHT))),
                daysLeft=parse_number(row.get(LEGACY_DAYS_LEFT)),
            )
    return None
