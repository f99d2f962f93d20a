"""
Metric Aggregator

Filters a delivery row set down to one campaign and sums it into campaign
totals, deriving CTR and ROAS. Rows are loaded into a pandas DataFrame so
numeric coercion and date ordering happen once, vectorized, for every
downstream consumer (burn rate, pacing, totals).

Row contract (upload-normalized columns):
- CAMPAIGN ORDER NAME, DATE, IMPRESSIONS, CLICKS, SPEND, REVENUE, TRANSACTIONS
- Numeric cells may be strings; anything unparseable counts as 0
- DATE == "Totals" marks a summary row that would double-count and is dropped
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

import numpy as np
import pandas as pd

from campaign_health.services.dates import TOTALS_SENTINEL, parse_delivery_date

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Delivery row columns
# =============================================================================

CAMPAIGN_COLUMN: str = 'CAMPAIGN ORDER NAME'
DATE_COLUMN: str = 'DATE'
PARSED_DATE_COLUMN: str = '_parsed_date'

# Total name -> source column
METRIC_COLUMNS: Dict[str, str] = {
    'spend': 'SPEND',
    'impressions': 'IMPRESSIONS',
    'clicks': 'CLICKS',
    'revenue': 'REVENUE',
    'transactions': 'TRANSACTIONS',
}


def _empty_frame() -> pd.DataFrame:
    frame = pd.DataFrame(columns=[CAMPAIGN_COLUMN, DATE_COLUMN])
    for column in METRIC_COLUMNS.values():
        frame[column] = pd.Series(dtype=float)
    frame[PARSED_DATE_COLUMN] = pd.Series(dtype='datetime64[ns]')
    return frame


def coerce_numeric(series: pd.Series) -> pd.Series:
    """
    Coerce a column to floats, mapping unparseable and non-finite values to 0.
    """
    numeric = pd.to_numeric(series, errors='coerce').astype(float)
    return numeric.replace([np.inf, -np.inf], np.nan).fillna(0.0)


def filter_campaign_rows(
    rows: Iterable[Mapping[str, Any]],
    campaign_name: str,
) -> pd.DataFrame:
    """
    Select one campaign's daily rows, coerced and sorted by date ascending.

    Rows with DATE == "Totals" are removed. Metric columns are coerced to
    floats and a parsed date column is added; rows whose date cannot be
    parsed sort first so the trailing windows favour dated rows.

    Args:
        rows: Delivery rows keyed by upstream column names.
        campaign_name: Exact campaign name to select.

    Returns:
        DataFrame with one row per delivery row, index reset. Empty when the
        campaign has no rows.
    """
    frame = pd.DataFrame(list(rows))
    if frame.empty or CAMPAIGN_COLUMN not in frame.columns:
        return _empty_frame()

    mask = frame[CAMPAIGN_COLUMN] == campaign_name
    if DATE_COLUMN in frame.columns:
        mask &= frame[DATE_COLUMN] != TOTALS_SENTINEL
    else:
        frame[DATE_COLUMN] = None

    campaign = frame.loc[mask].copy()
    if campaign.empty:
        return _empty_frame()

    for column in METRIC_COLUMNS.values():
        if column in campaign.columns:
            campaign[column] = coerce_numeric(campaign[column])
        else:
            campaign[column] = 0.0

    campaign[PARSED_DATE_COLUMN] = pd.to_datetime(
        campaign[DATE_COLUMN].map(parse_delivery_date)
    )
    campaign = campaign.sort_values(
        PARSED_DATE_COLUMN, na_position='first', kind='mergesort'
    )
    return campaign.reset_index(drop=True)


def aggregate_campaign_totals(campaign_rows: pd.DataFrame) -> Dict[str, float]:
    """
    Sum spend, impressions, clicks, revenue and transactions.

    Args:
        campaign_rows: Output of filter_campaign_rows.

    Returns:
        Dict keyed by total name ('spend', 'impressions', ...).
    """
    return {
        name: float(campaign_rows[column].sum()) if not campaign_rows.empty else 0.0
        for name, column in METRIC_COLUMNS.items()
    }


def calculate_ctr(clicks: float, impressions: float) -> float:
    """Click-through rate in percent units; 0 when there are no impressions."""
    return clicks / impressions * 100 if impressions > 0 else 0.0


def calculate_roas(revenue: float, spend: float) -> float:
    """Return on ad spend as a ratio (2.5 = 250%); 0 when there is no spend."""
    return revenue / spend if spend > 0 else 0.0


def list_campaign_names(rows: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Distinct campaign names in first-seen order, ignoring blank names and
    campaigns that only appear on "Totals" rows.
    """
    names: Dict[str, None] = {}
    for row in rows:
        name = row.get(CAMPAIGN_COLUMN)
        if name and row.get(DATE_COLUMN) != TOTALS_SENTINEL:
            names.setdefault(str(name), None)
    return list(names)
