"""
Contract-Terms Resolver

Contract terms reach the dashboard in two incompatible shapes:

- Spreadsheet upload: "Campaign Name", "Start Date", "Budget", "Impressions Goal", ...
  with whatever casing and synonyms the account team used
- Database row: campaign_name, start_date, budget, impressions_goal, ...

This module is the only place that knows about those spellings. Every source
row is normalized once into the canonical ContractTerms model through the
FIELD_SYNONYMS table, and the scoring engine only ever sees canonical fields.

Key Features:
- Case, underscore and whitespace insensitive field matching
- Ordered budget candidates, then a plausible-range heuristic
- Exact, then fuzzy (normalized substring) campaign name lookup
- Never raises on malformed rows: numbers default to 0, dates to None
- CSV upload ingestion via pandas
"""

import io
import logging
import re
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from campaign_health.core.config import ScoringConfig, get_scoring_config
from campaign_health.models import ContractTerms, ContractTermsSource
from campaign_health.services.dates import parse_campaign_date

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Field synonyms (compared after _normalize_key)
# =============================================================================

FIELD_SYNONYMS: Dict[str, List[str]] = {
    'campaignName': [
        'name',
        'campaign name',
        'campaign',
        'campaign order name',
        'campaignname',
    ],
    'startDate': ['start date', 'startdate', 'flight start', 'flight start date'],
    'endDate': ['end date', 'enddate', 'flight end', 'flight end date'],
    'cpm': ['cpm', 'contracted cpm'],
    'impressionsGoal': [
        'impressions goal',
        'goal impressions',
        'impression goal',
        'contracted impressions',
        'impressions',
    ],
}

BUDGET_FIELD_CANDIDATES: List[str] = [
    'budget',
    'total budget',
    'media budget',
    'campaign budget',
    'contract budget',
    'gross budget',
    'net budget',
    'spend budget',
    'budget amount',
]

# Database bookkeeping columns never hold a budget
METADATA_FIELDS: List[str] = ['id', 'created at', 'updated at']

DATABASE_MARKER_FIELDS = ('campaign_name', 'impressions_goal', 'start_date', 'end_date')

RawContractTerms = Union[Mapping[str, Any], ContractTerms]

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


# =============================================================================
# Field helpers
# =============================================================================


def _normalize_key(key: Any) -> str:
    return " ".join(str(key).replace("_", " ").lower().split())


def normalize_campaign_name(name: Any) -> str:
    """Lower-case and collapse whitespace for fuzzy name comparison."""
    return " ".join(str(name or "").lower().split())


def _name_tokens(name: Any) -> List[str]:
    return _TOKEN_PATTERN.findall(normalize_campaign_name(name))


def _contains_tokens(haystack: List[str], needle: List[str]) -> bool:
    width = len(needle)
    return any(haystack[i:i + width] == needle for i in range(len(haystack) - width + 1))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def _lookup(normalized_row: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    for candidate in candidates:
        value = normalized_row.get(candidate)
        if not _is_blank(value):
            return value
    return None


def _try_number(value: Any) -> Optional[float]:
    if _is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = str(value).replace("$", "").replace(",", "").strip()
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if pd.isna(number) or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_number(value: Any) -> float:
    """
    Parse a currency or count cell ("$12,500.00", "1,000,000", 42) to float.

    Unparseable or missing values become 0.
    """
    number = _try_number(value)
    return number if number is not None else 0.0


def _parse_optional_date(value: Any):
    if _is_blank(value):
        return None
    try:
        return parse_campaign_date(value)
    except ValueError:
        logger.debug(f"Ignoring unparseable contract date: {value!r}")
        return None


# =============================================================================
# Normalization
# =============================================================================


def resolve_budget(
    row: Mapping[str, Any],
    config: Optional[ScoringConfig] = None,
) -> float:
    """
    Find the budget in a raw contract terms row.

    Tries BUDGET_FIELD_CANDIDATES in order and returns the first positive
    value. Failing that, returns the first numeric field whose value lies in
    config.budget_plausible_range, skipping name, date, CPM, goal and
    bookkeeping fields. Returns 0 when nothing qualifies.
    """
    config = config or get_scoring_config()
    normalized_row = {_normalize_key(key): value for key, value in row.items()}

    for candidate in BUDGET_FIELD_CANDIDATES:
        number = _try_number(normalized_row.get(candidate))
        if number is not None and number > 0:
            return number

    excluded = set(METADATA_FIELDS)
    for synonyms in FIELD_SYNONYMS.values():
        excluded.update(synonyms)

    low, high = config.budget_plausible_range
    for key, value in normalized_row.items():
        if key in excluded:
            continue
        number = _try_number(value)
        if number is not None and low <= number <= high:
            logger.debug(f"Budget inferred from field '{key}': {number}")
            return number
    return 0.0


def normalize_contract_terms_row(
    row: RawContractTerms,
    config: Optional[ScoringConfig] = None,
) -> Optional[ContractTerms]:
    """
    Convert one raw contract terms row into canonical ContractTerms.

    Args:
        row: Upload-shaped or database-shaped mapping, or ContractTerms.
        config: Scoring policy (for the budget heuristic).

    Returns:
        ContractTerms, or None when the row has no campaign name.
    """
    if isinstance(row, ContractTerms):
        return row

    normalized_row = {_normalize_key(key): value for key, value in row.items()}
    name = _lookup(normalized_row, FIELD_SYNONYMS['campaignName'])
    if name is None:
        return None

    source = (
        ContractTermsSource.DATABASE
        if any(marker in row for marker in DATABASE_MARKER_FIELDS)
        else ContractTermsSource.UPLOAD
    )

    return ContractTerms(
        campaignName=str(name).strip(),
        startDate=_parse_optional_date(_lookup(normalized_row, FIELD_SYNONYMS['startDate'])),
        endDate=_parse_optional_date(_lookup(normalized_row, FIELD_SYNONYMS['endDate'])),
        budget=resolve_budget(row, config),
        cpm=parse_number(_lookup(normalized_row, FIELD_SYNONYMS['cpm'])),
        impressionsGoal=parse_number(_lookup(normalized_row, FIELD_SYNONYMS['impressionsGoal'])),
        source=source,
    )


def normalize_contract_terms(
    rows: Optional[Iterable[RawContractTerms]],
    config: Optional[ScoringConfig] = None,
) -> List[ContractTerms]:
    """Normalize a batch of rows, dropping rows without a campaign name."""
    normalized: List[ContractTerms] = []
    for row in rows or []:
        terms = normalize_contract_terms_row(row, config)
        if terms is not None:
            normalized.append(terms)
    return normalized


# =============================================================================
# Lookup
# =============================================================================


def find_contract_terms(
    contract_terms: Iterable[ContractTerms],
    campaign_name: str,
) -> Optional[ContractTerms]:
    """
    Find the contract terms for a campaign.

    An exact name match wins. Otherwise one name must contain the other as a
    run of whole words (case and punctuation ignored), because upstream
    systems prefix the same campaign differently ("2001367: HRB: Spring Tax
    Push" vs "Spring Tax Push"). The longest matching name wins.

    Returns:
        The matching ContractTerms or None.
    """
    terms_list = list(contract_terms)

    for terms in terms_list:
        if terms.campaignName == campaign_name or terms.campaignName == campaign_name.strip():
            return terms

    target = _name_tokens(campaign_name)
    if not target:
        return None

    best: Optional[ContractTerms] = None
    best_length = 0
    for terms in terms_list:
        candidate = _name_tokens(terms.campaignName)
        if not candidate:
            continue
        if _contains_tokens(target, candidate) or _contains_tokens(candidate, target):
            length = len(normalize_campaign_name(terms.campaignName))
            if length > best_length:
                best, best_length = terms, length
    return best


def resolve_contract_terms(
    contract_terms_data: Optional[Iterable[RawContractTerms]],
    campaign_name: str,
    config: Optional[ScoringConfig] = None,
    log: Optional[logging.Logger] = None,
) -> Optional[ContractTerms]:
    """
    Normalize whichever contract terms source is available and find the
    campaign in it. Returns None when there is no match.
    """
    log = log or logger
    terms = find_contract_terms(normalize_contract_terms(contract_terms_data, config), campaign_name)
    if terms is None:
        log.debug(f"No contract terms found for '{campaign_name}'")
    else:
        log.debug(
            f"Contract terms for '{campaign_name}' matched '{terms.campaignName}' "
            f"({terms.source.value}), budget {terms.budget}"
        )
    return terms


# =============================================================================
# Flight completion
# =============================================================================


def calculate_completion_percentage(days_into_flight: float, days_left: float) -> float:
    """
    Percent of the flight elapsed.

    A flight with no days left and more than one day elapsed is complete
    (100) even when the feed has not caught up; both values 0 means unknown
    and yields 0.
    """
    if days_left == 0 and days_into_flight > 1:
        return 100.0
    if days_into_flight == 0 and days_left == 0:
        return 0.0
    total_days = days_into_flight + days_left
    return days_into_flight / total_days * 100 if total_days > 0 else 0.0


# =============================================================================
# Upload ingestion
# =============================================================================

REQUIRED_UPLOAD_COLUMNS: List[str] = ['campaign name', 'start date', 'end date']


def ingest_contract_terms_csv(file: Union[BinaryIO, bytes, str]) -> List[ContractTerms]:
    """
    Parse an uploaded contract terms spreadsheet (CSV).

    Header matching is case-insensitive. Campaign Name, Start Date and End
    Date are required; Budget, CPM and Impressions Goal are optional. Rows
    without a campaign name are skipped.

    Args:
        file: File object, raw bytes or CSV text.

    Returns:
        Canonical ContractTerms, one per named row.

    Raises:
        ValueError: If the file is empty or required columns are missing.
    """
    if hasattr(file, 'read'):
        content = file.read()
    else:
        content = file
    file_like = io.BytesIO(content) if isinstance(content, bytes) else io.StringIO(content)

    try:
        df = pd.read_csv(file_like, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise ValueError("Contract terms file is empty") from e

    present = {_normalize_key(column) for column in df.columns}
    missing = [column for column in REQUIRED_UPLOAD_COLUMNS if column not in present]
    if missing:
        raise ValueError(f"Required columns missing: {', '.join(missing)}")

    terms = normalize_contract_terms(df.to_dict(orient='records'))
    logger.info(f"Parsed {len(terms)} contract terms rows from {len(df)} CSV rows")
    return terms
