"""
FastAPI router module for campaign health scoring.

Implements POST /campaign-health (score one campaign), POST
/campaign-health/batch (score every campaign in the rows), POST
/campaign-health/pacing (pacing metrics for every campaign with contract
terms) and POST /campaign-health/contract-terms (parse an uploaded contract
terms CSV into canonical contract terms).

The engine itself never raises for missing or malformed data; these handlers
only reject requests that cannot name a campaign or a parseable upload, and
convert anything unexpected into a 500 with the traceback logged.

Response shapes:
- /campaign-health: CampaignHealthResult
- /campaign-health/batch: { results: [CampaignHealthResult], totalCampaigns }
- /campaign-health/pacing: { campaigns: [ProcessedCampaign] }
- /campaign-health/contract-terms: { contractTerms: [ContractTerms] }
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from campaign_health.core.dependencies import ScoringConfigDep
from campaign_health.models.schemas import (
    BatchCampaignHealthRequest,
    CampaignHealthRequest,
    CampaignHealthResult,
    ContractTerms,
    DeliveryRow,
    PacingRequest,
    ProcessedCampaign,
)
from campaign_health.services.contract_terms import ingest_contract_terms_csv
from campaign_health.services.health import (
    calculate_all_campaign_health,
    calculate_campaign_health,
)
from campaign_health.services.pacing import process_campaigns


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaign-health", tags=["campaign-health"])


# =============================================================================
# Local Pydantic Models for API Responses
# =============================================================================

class BatchCampaignHealthResponse(BaseModel):
    """Response model for the batch scoring endpoint."""
    results: List[CampaignHealthResult] = Field(
        default_factory=list,
        description="One result per campaign, in first-seen order"
    )
    totalCampaigns: int = Field(default=0, ge=0, description="Number of campaigns scored")


class PacingResponse(BaseModel):
    """Response model for the pacing endpoint."""
    campaigns: List[ProcessedCampaign] = Field(
        default_factory=list,
        description="Campaigns with delivery data and usable contract terms"
    )


class ContractTermsUploadResponse(BaseModel):
    """Response model for the contract terms upload endpoint."""
    contractTerms: List[ContractTerms] = Field(
        default_factory=list,
        description="Canonical contract terms, one per named row"
    )


def _engine_rows(rows: List[DeliveryRow]) -> List[Dict[str, Any]]:
    return [row.to_engine_row() for row in rows]


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=CampaignHealthResult)
async def score_campaign(
    request: CampaignHealthRequest,
    config: ScoringConfigDep,
) -> CampaignHealthResult:
    """
    Score one campaign's health.

    Args:
        request: Delivery rows plus whichever contract terms, legacy pacing
            rows or precomputed pacing metrics the dashboard has loaded.
        config: Scoring policy from settings.

    Returns:
        CampaignHealthResult. A campaign with no delivery rows yields the
        no-data result rather than an error.

    Raises:
        HTTPException 400: If campaignName is blank
        HTTPException 500: If scoring fails unexpectedly
    """
    if not request.campaignName.strip():
        raise HTTPException(status_code=400, detail="campaignName is required")

    try:
        return calculate_campaign_health(
            _engine_rows(request.rows),
            request.campaignName,
            pacing_data=request.pacingData,
            contract_terms_data=request.contractTermsData,
            precomputed_pacing_metrics=request.pacingMetrics,
            config=config,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error scoring campaign '{request.campaignName}': {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error scoring campaign: {str(e)}",
        )


@router.post("/batch", response_model=BatchCampaignHealthResponse)
async def score_all_campaigns(
    request: BatchCampaignHealthRequest,
    config: ScoringConfigDep,
) -> BatchCampaignHealthResponse:
    """
    Score every campaign present in the delivery rows.

    Raises:
        HTTPException 500: If scoring fails unexpectedly
    """
    try:
        results = calculate_all_campaign_health(
            _engine_rows(request.rows),
            pacing_data=request.pacingData,
            contract_terms_data=request.contractTermsData,
            pacing_metrics_by_campaign=request.pacingMetrics,
            config=config,
        )
    except Exception as e:
        logger.error(f"Error scoring campaign batch: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error scoring campaigns: {str(e)}",
        )

    logger.info(f"Scored {len(results)} campaigns from {len(request.rows)} delivery rows")
    return BatchCampaignHealthResponse(results=results, totalCampaigns=len(results))


@router.post("/pacing", response_model=PacingResponse)
async def compute_pacing(
    request: PacingRequest,
    config: ScoringConfigDep,
) -> PacingResponse:
    """
    Compute pacing metrics for every campaign with contract terms.

    Campaigns without delivery rows or with unusable contract terms are
    skipped (and logged) rather than failing the request.

    Raises:
        HTTPException 500: If the calculation fails unexpectedly
    """
    unfiltered_rows = (
        _engine_rows(request.unfilteredRows) if request.unfilteredRows is not None else None
    )
    try:
        campaigns = process_campaigns(
            request.contractTermsData,
            _engine_rows(request.rows),
            unfiltered_rows=unfiltered_rows,
            config=config,
        )
    except Exception as e:
        logger.error(f"Error computing pacing: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing pacing: {str(e)}",
        )
    return PacingResponse(campaigns=campaigns)


@router.post("/contract-terms", response_model=ContractTermsUploadResponse)
async def upload_contract_terms(request: Request) -> ContractTermsUploadResponse:
    """
    Parse a contract terms spreadsheet sent as the raw CSV request body.

    Raises:
        HTTPException 400: If the file is empty or required columns are missing
        HTTPException 500: If parsing fails unexpectedly
    """
    content = await request.body()
    try:
        terms = ingest_contract_terms_csv(content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error parsing contract terms upload: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error parsing contract terms: {str(e)}",
        )
    return ContractTermsUploadResponse(contractTerms=terms)
