"""
Package initialization file for Campaign Health models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import data models from campaign_health.models directly.

Usage:
    from campaign_health.models import (
        CampaignHealthResult,
        ContractTerms,
        PacingMetrics,
        BurnRateConfidence,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from campaign_health.models.enums import (
    CAPPED_SUFFIX,
    BurnRateConfidence,
    ContractTermsSource,
    HealthStatus,
)


# =============================================================================
# Schemas
# =============================================================================

from campaign_health.models.schemas import (
    # Delivery input
    DeliveryRow,
    # Contract terms
    ContractTerms,
    # Pacing
    PacingMetrics,
    CampaignPacingMetrics,
    ProcessedCampaign,
    # Burn rate
    BurnRateData,
    SpendBurnRate,
    # Result
    CampaignHealthResult,
    # Requests
    CampaignHealthRequest,
    BatchCampaignHealthRequest,
    PacingRequest,
)


__all__ = [
    # ----- Enums -----
    'CAPPED_SUFFIX',
    'BurnRateConfidence',
    'ContractTermsSource',
    'HealthStatus',
    # ----- Schemas -----
    'DeliveryRow',
    'ContractTerms',
    'PacingMetrics',
    'CampaignPacingMetrics',
    'ProcessedCampaign',
    'BurnRateData',
    'SpendBurnRate',
    'CampaignHealthResult',
    'CampaignHealthRequest',
    'BatchCampaignHealthRequest',
    'PacingRequest',
]
