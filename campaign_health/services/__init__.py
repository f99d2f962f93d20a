"""
Campaign Health Services

Business logic for the campaign health scoring engine. Every service is a set
of stateless functions over delivery rows, contract terms and pacing data;
nothing here touches the network or a database.

Services:
- dates: Campaign and delivery date parsing
- metrics: Campaign row filtering, totals, CTR and ROAS
- scoring: Sub-score calculators, overspend projection, weighted composite
- burn_rate: Impression and spend burn-rate estimation
- contract_terms: Contract terms normalization, lookup and CSV ingestion
- pacing: Flight progress and delivery pacing from contract terms
- health: Campaign health composer (single campaign and batch)

All services are consumed by the API layer (campaign_health/api/).
"""

# =============================================================================
# Date Parsing Exports
# =============================================================================

from campaign_health.services.dates import (
    TOTALS_SENTINEL,
    parse_campaign_date,
    parse_delivery_date,
)

# =============================================================================
# Metric Aggregation Exports
# Row filtering (Totals exclusion, numeric coercion, date ordering) and
# campaign totals with derived CTR / ROAS
# =============================================================================

from campaign_health.services.metrics import (
    aggregate_campaign_totals,
    calculate_ctr,
    calculate_roas,
    coerce_numeric,
    filter_campaign_rows,
    list_campaign_names,
)

# =============================================================================
# Scoring Exports
# Step-function sub-scores, overspend projection and the weighted composite
# =============================================================================

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

# =============================================================================
# Burn Rate Exports
# Trailing impression velocity and anomaly-damped spend velocity
# =============================================================================

from campaign_health.services.burn_rate import (
    calculate_burn_rate,
    calculate_spend_burn_rate,
    select_burn_rate,
)

# =============================================================================
# Contract Terms Exports
# Synonym-table normalization of upload and database rows, fuzzy lookup,
# flight completion and CSV ingestion
# =============================================================================

from campaign_health.services.contract_terms import (
    FIELD_SYNONYMS,
    BUDGET_FIELD_CANDIDATES,
    calculate_completion_percentage,
    find_contract_terms,
    ingest_contract_terms_csv,
    normalize_contract_terms,
    normalize_contract_terms_row,
    parse_number,
    resolve_budget,
    resolve_contract_terms,
)

# =============================================================================
# Pacing Exports
# Reference-date anchored flight progress, expected vs actual impressions
# =============================================================================

from campaign_health.services.pacing import (
    calculate_campaign_metrics,
    find_legacy_pacing_metrics,
    get_global_reference_date,
    process_campaigns,
)

# =============================================================================
# Health Composer Exports
# =============================================================================

from campaign_health.services.health import (
    build_no_data_result,
    calculate_all_campaign_health,
    calculate_campaign_health,
)

__all__ = [
    # ----- Dates -----
    'TOTALS_SENTINEL',
    'parse_campaign_date',
    'parse_delivery_date',
    # ----- Metrics -----
    'aggregate_campaign_totals',
    'calculate_ctr',
    'calculate_roas',
    'coerce_numeric',
    'filter_campaign_rows',
    'list_campaign_names',
    # ----- Scoring -----
    'calculate_burn_rate_score',
    'calculate_ctr_score',
    'calculate_delivery_pacing_score',
    'calculate_overspend_projection',
    'calculate_overspend_score',
    'calculate_roas_score',
    'calculate_weighted_health_score',
    'determine_health_status',
    'round_half_up',
    # ----- Burn Rate -----
    'calculate_burn_rate',
    'calculate_spend_burn_rate',
    'select_burn_rate',
    # ----- Contract Terms -----
    'FIELD_SYNONYMS',
    'BUDGET_FIELD_CANDIDATES',
    'calculate_completion_percentage',
    'find_contract_terms',
    'ingest_contract_terms_csv',
    'normalize_contract_terms',
    'normalize_contract_terms_row',
    'parse_number',
    'resolve_budget',
    'resolve_contract_terms',
    # ----- Pacing -----
    'calculate_campaign_metrics',
    'find_legacy_pacing_metrics',
    'get_global_reference_date',
    'process_campaigns',
    # ----- Health -----
    'build_no_data_result',
    'calculate_all_campaign_health',
    'calculate_campaign_health',
]
