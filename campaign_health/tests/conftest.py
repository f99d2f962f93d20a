"""
Pytest Configuration and Shared Fixtures for Campaign Health Tests.

This module provides fixtures and configuration for all engine and API tests:
- Scoring policy fixture with default bands and weights
- Delivery row builders matching the dashboard's upload-normalized columns
- Contract terms in upload and database shapes
- Precomputed and legacy pacing data
- FastAPI TestClient with dependency overrides reset after each test

Fixture data:
- "X": 10 days, 1,000 impressions / 10 clicks / $100 / $300 per day
  (CTR 1.0%, ROAS 3.0), no contract terms
- "2001367: HRB: Spring Tax Push": 10 days from 03/01/2025, 10,000
  impressions / 60 clicks / $100 / $400 per day, contracted as
  "Spring Tax Push" for 03/01/2025-03/31/2025, 310,000 impressions, $3,100
"""

from datetime import date, timedelta
from typing import Any, Callable, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from campaign_health.core.config import ScoringConfig
from campaign_health.models import PacingMetrics


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - api: Marks tests that exercise the HTTP layer through TestClient
    - properties: Marks tests for the engine's documented invariants

    Usage:
        # Run only engine tests:
        pytest -m "not api"

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line(
        'markers',
        'api: marks tests that exercise the FastAPI routes'
    )
    config.addinivalue_line(
        'markers',
        'properties: marks tests for scoring invariants (weights, guards, no-data)'
    )


# ============================================================
# ROW BUILDERS
# ============================================================

def make_delivery_rows(
    campaign_name: str,
    start: date,
    days: int,
    impressions: float = 1000,
    clicks: float = 10,
    spend: float = 100.0,
    revenue: float = 300.0,
    transactions: float = 1,
) -> List[Dict[str, Any]]:
    """
    Build one delivery row per day with constant daily metrics.

    Dates use the upload format (MM/DD/YYYY).
    """
    return [
        {
            'CAMPAIGN ORDER NAME': campaign_name,
            'DATE': (start + timedelta(days=offset)).strftime('%m/%d/%Y'),
            'IMPRESSIONS': impressions,
            'CLICKS': clicks,
            'SPEND': spend,
            'REVENUE': revenue,
            'TRANSACTIONS': transactions,
        }
        for offset in range(days)
    ]


@pytest.fixture
def row_builder() -> Callable[..., List[Dict[str, Any]]]:
    """Expose make_delivery_rows to tests that need custom series."""
    return make_delivery_rows


# ============================================================
# SCORING POLICY
# ============================================================

@pytest.fixture
def scoring_config() -> ScoringConfig:
    """Default scoring policy, independent of the process environment."""
    return ScoringConfig()


# ============================================================
# DELIVERY DATA FIXTURES
# ============================================================

@pytest.fixture
def simple_rows() -> List[Dict[str, Any]]:
    """
    Campaign "X": 10 days totalling 10,000 impressions, 100 clicks,
    $1,000 spend and $3,000 revenue.
    """
    return make_delivery_rows('X', date(2025, 3, 1), 10)


@pytest.fixture
def contracted_campaign_name() -> str:
    """Delivery-side name of the contracted campaign."""
    return '2001367: HRB: Spring Tax Push'


@pytest.fixture
def contracted_rows(contracted_campaign_name: str) -> List[Dict[str, Any]]:
    """
    10 days (03/01-03/10/2025) of 10,000 impressions, 60 clicks, $100 spend
    and $400 revenue per day.
    """
    return make_delivery_rows(
        contracted_campaign_name,
        date(2025, 3, 1),
        10,
        impressions=10000,
        clicks=60,
        spend=100.0,
        revenue=400.0,
    )


@pytest.fixture
def mixed_rows(
    simple_rows: List[Dict[str, Any]],
    contracted_rows: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Both campaigns interleaved, plus a Totals summary row."""
    totals_row = {
        'CAMPAIGN ORDER NAME': 'X',
        'DATE': 'Totals',
        'IMPRESSIONS': 10000,
        'CLICKS': 100,
        'SPEND': 1000,
        'REVENUE': 3000,
        'TRANSACTIONS': 10,
    }
    interleaved: List[Dict[str, Any]] = []
    for simple, contracted in zip(simple_rows, contracted_rows):
        interleaved.extend([simple, contracted])
    return interleaved + [totals_row]


# ============================================================
# CONTRACT TERMS FIXTURES
# ============================================================

@pytest.fixture
def upload_contract_terms() -> List[Dict[str, Any]]:
    """Contract terms as parsed from the account team's spreadsheet."""
    return [
        {
            'Campaign Name': 'Spring Tax Push',
            'Start Date': '03/01/2025',
            'End Date': '03/31/2025',
            'Budget': '$3,100.00',
            'CPM': '$10.00',
            'Impressions Goal': '310,000',
        },
    ]


@pytest.fixture
def database_contract_terms() -> List[Dict[str, Any]]:
    """The same contract as stored in the database."""
    return [
        {
            'id': 17,
            'campaign_name': 'Spring Tax Push',
            'start_date': '2025-03-01',
            'end_date': '2025-03-31',
            'budget': 3100,
            'cpm': 10,
            'impressions_goal': 310000,
            'created_at': '2025-02-20T10:00:00Z',
        },
    ]


# ============================================================
# PACING FIXTURES
# ============================================================

@pytest.fixture
def legacy_pacing_data() -> List[Dict[str, Any]]:
    """Legacy pacing export for campaign "X"."""
    return [
        {'Campaign Name': 'X', 'Days into Flight': '5', 'Days Left': '0'},
    ]


@pytest.fixture
def precomputed_pacing_metrics() -> PacingMetrics:
    """Pacing metrics computed upstream for a campaign on plan."""
    return PacingMetrics(
        daysIntoFlight=10,
        daysLeft=20,
        currentPacing=1.0,
        expectedImpressions=10000,
        actualImpressions=10000,
        remainingImpressions=20000,
        remainingAverageNeeded=1000,
    )


# ============================================================
# API CLIENT
# ============================================================

@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    TestClient bound to the application, with lifespan events run.

    Dependency overrides set by a test are cleared afterwards.
    """
    from campaign_health.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
