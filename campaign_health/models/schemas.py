"""
Pydantic models for the Campaign Health service.

This module provides type-safe data validation and serialization for the
scoring engine's inputs and outputs, and for the HTTP request bodies that carry
them. Field names are camelCase because the dashboard reads them directly.

Model groups:
- Delivery input: DeliveryRow (upload-normalized daily rows)
- Contract terms: ContractTerms (canonical schema after synonym normalization)
- Pacing: PacingMetrics, CampaignPacingMetrics, ProcessedCampaign
- Burn rate: BurnRateData, SpendBurnRate
- Result: CampaignHealthResult
- Requests: CampaignHealthRequest, BatchCampaignHealthRequest, PacingRequest

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from campaign_health.models.enums import (
    BurnRateConfidence,
    ContractTermsSource,
    HealthStatus,
)


# Raw numeric cells arrive as numbers or strings; the engine coerces them.
RawNumber = Union[float, str, None]


# =============================================================================
# Delivery Input
# =============================================================================


class DeliveryRow(BaseModel):
    """
    One campaign's delivery for one day, as produced by upload ingestion.

    The upstream column names contain spaces, so fields are populated through
    aliases. A row whose DATE is the literal "Totals" is a pre-aggregated
    summary row and is excluded from all scoring math.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra='allow',
        json_schema_extra={
            "example": {
                "CAMPAIGN ORDER NAME": "2001367: HRB: Spring Tax Push",
                "DATE": "03/14/2025",
                "IMPRESSIONS": 12500,
                "CLICKS": 48,
                "SPEND": 112.5,
                "REVENUE": 340.0,
                "TRANSACTIONS": 3,
            }
        }
    )

    campaignOrderName: str = Field(..., alias="CAMPAIGN ORDER NAME")
    date: str = Field(..., alias="DATE")
    impressions: RawNumber = Field(default=0, alias="IMPRESSIONS")
    clicks: RawNumber = Field(default=0, alias="CLICKS")
    spend: RawNumber = Field(default=0, alias="SPEND")
    revenue: RawNumber = Field(default=0, alias="REVENUE")
    transactions: RawNumber = Field(default=0, alias="TRANSACTIONS")

    def to_engine_row(self) -> Dict[str, Any]:
        """Return the row keyed by its upstream column names."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Contract Terms
# =============================================================================


class ContractTerms(BaseModel):
    """
    Canonical contract terms for one campaign.

    Produced by services.contract_terms from either the spreadsheet upload
    shape or the database row shape. Numeric fields default to 0 when absent
    or unparseable; a budget of 0 means no overspend judgement is possible.
    """
    campaignName: str = Field(..., description="Campaign name as written in the source")
    startDate: Optional[DateType] = Field(default=None, description="Flight start date")
    endDate: Optional[DateType] = Field(default=None, description="Flight end date")
    budget: float = Field(default=0.0, description="Total contracted budget")
    cpm: float = Field(default=0.0, description="Contracted CPM")
    impressionsGoal: float = Field(default=0.0, description="Contracted impressions")
    source: ContractTermsSource = Field(
        default=ContractTermsSource.UPLOAD,
        description="Source shape the record was normalized from"
    )


# =============================================================================
# Pacing
# =============================================================================


class PacingMetrics(BaseModel):
    """
    Flight progress for one campaign, as supplied by the pacing collaborator.

    Only daysIntoFlight, daysLeft and currentPacing are required by contract;
    the remaining fields are filled when the metrics were computed from real
    contract terms and let the engine use the true impression goal.

    expectedImpressions, actualImpressions and daysLeft all describe the
    flight as of referenceDate; the engine compares delivery and spend
    through that date when it is set.
    """
    daysIntoFlight: float = Field(default=0, ge=0)
    daysLeft: float = Field(default=0)
    currentPacing: float = Field(default=0, description="Actual / expected impressions ratio")
    referenceDate: Optional[DateType] = Field(
        default=None, description="Date the metrics are measured through"
    )
    expectedImpressions: Optional[float] = None
    actualImpressions: Optional[float] = Field(
        default=None, description="Impressions delivered through referenceDate"
    )
    remainingImpressions: Optional[float] = None
    remainingAverageNeeded: Optional[float] = None


class CampaignPacingMetrics(PacingMetrics):
    """
    Full pacing calculation for a campaign with complete contract terms.

    The reference date is "yesterday": the second most recent delivery date,
    which avoids scoring against a partially reported final day.
    """
    campaignName: str
    budget: float
    cpm: float
    impressionGoal: float
    startDate: DateType
    endDate: DateType
    referenceDate: DateType
    totalCampaignDays: int
    averageDailyImpressions: float
    yesterdayImpressions: float
    yesterdayVsNeeded: float


class ProcessedCampaign(BaseModel):
    """A campaign that had delivery rows and usable contract terms."""
    name: str
    contractTerms: ContractTerms
    deliveryRowCount: int
    metrics: CampaignPacingMetrics


# =============================================================================
# Burn Rate
# =============================================================================


class BurnRateData(BaseModel):
    """
    Trailing impression velocity for a campaign.

    Rates are mean daily impressions over the trailing 1/3/7 dated rows; each is
    0 when fewer rows exist. Percentages are relative to the required daily
    impressions and are 0 when that is unknown.
    """
    oneDayRate: float = 0.0
    threeDayRate: float = 0.0
    sevenDayRate: float = 0.0
    oneDayPercentage: float = 0.0
    threeDayPercentage: float = 0.0
    sevenDayPercentage: float = 0.0
    confidence: BurnRateConfidence = BurnRateConfidence.NO_DATA


class SpendBurnRate(BaseModel):
    """
    Daily spend velocity used for the overspend projection.

    confidence is a BurnRateConfidence value, optionally suffixed with
    "-capped" when the rate was clamped to the spend ceiling.
    """
    dailySpendRate: float = 0.0
    averageDailySpend: float = 0.0
    confidence: str = BurnRateConfidence.NO_DATA.value
    capped: bool = False


# =============================================================================
# Result
# =============================================================================


class CampaignHealthResult(BaseModel):
    """
    Health scoring result for one campaign.

    Recomputed from scratch on every call and immutable once built. The
    composite healthScore is always the one-decimal weighted sum of the five
    sub-scores. A healthScore of 0 with healthStatus "no-data" means the
    campaign had no delivery rows, not that it is unhealthy.
    """
    model_config = ConfigDict(frozen=True)

    campaignName: str

    # Aggregated totals
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    revenue: float = 0.0
    transactions: float = 0.0
    ctr: float = Field(default=0.0, description="Click-through rate in percent")
    roas: float = Field(default=0.0, description="Revenue / spend ratio")

    # Sub-scores and composite
    roasScore: float = 0.0
    deliveryPacingScore: float = 0.0
    burnRateScore: float = 0.0
    ctrScore: float = 0.0
    overspendScore: float = 0.0
    healthScore: float = 0.0
    healthStatus: HealthStatus = HealthStatus.NO_DATA

    # Burn rate
    burnRateConfidence: BurnRateConfidence = BurnRateConfidence.NO_DATA
    burnRateData: BurnRateData = Field(default_factory=BurnRateData)
    spendBurnRate: SpendBurnRate = Field(default_factory=SpendBurnRate)
    burnRate: float = 0.0
    burnRatePercentage: float = 0.0
    requiredDailyImpressions: float = 0.0

    # Contract terms and flight progress
    budget: Optional[float] = None
    daysLeft: Optional[float] = None
    daysIntoFlight: Optional[float] = None
    completionPercentage: float = 0.0

    # Pacing and projection
    expectedImpressions: float = 0.0
    pace: float = 0.0
    deliveryPacing: float = 0.0
    projectedSpend: float = 0.0
    overspend: float = Field(default=0.0, description="Projected overspend in currency")
    overspendPercentage: float = 0.0


# =============================================================================
# Requests
# =============================================================================


class CampaignHealthRequest(BaseModel):
    """Request body for scoring a single campaign."""
    campaignName: str = Field(..., description="Campaign to score")
    rows: List[DeliveryRow] = Field(default_factory=list)
    pacingData: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Legacy pacing rows with 'Days into Flight' / 'Days Left'"
    )
    contractTermsData: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Contract terms rows in upload or database shape"
    )
    pacingMetrics: Optional[PacingMetrics] = None


class BatchCampaignHealthRequest(BaseModel):
    """Request body for scoring every campaign present in the rows."""
    rows: List[DeliveryRow] = Field(default_factory=list)
    pacingData: List[Dict[str, Any]] = Field(default_factory=list)
    contractTermsData: List[Dict[str, Any]] = Field(default_factory=list)
    pacingMetrics: Dict[str, PacingMetrics] = Field(
        default_factory=dict,
        description="Precomputed pacing metrics keyed by campaign name"
    )


class PacingRequest(BaseModel):
    """Request body for computing pacing metrics from contract terms."""
    rows: List[DeliveryRow] = Field(default_factory=list)
    contractTermsData: List[Dict[str, Any]] = Field(default_factory=list)
    unfilteredRows: Optional[List[DeliveryRow]] = Field(
        default=None,
        description="Full delivery history when rows are date-filtered"
    )
