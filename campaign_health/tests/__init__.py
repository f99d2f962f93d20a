'''
Campaign Health Test Suite

Test coverage for the scoring engine and its FastAPI surface.

Test Modules:
-------------
- test_scoring.py: Sub-score bands, overspend risk, composite and status
- test_metrics.py: Row filtering, Totals exclusion, totals, date parsing
- test_burn_rate.py: Impression windows and spend anomaly damping
- test_contract_terms.py: Normalization, budget resolution, lookup, CSV upload
- test_pacing.py: Reference date, flight progress, batch processing
- test_health.py: Composer end to end, pacing sources, invariants
- test_api.py: Route contracts through TestClient

Running Tests:
--------------
    pip install -e ".[test]"
    pytest campaign_health/tests/ -v

    # Engine only:
    pytest -m "not api"

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

# This file enables pytest discovery of the tests directory

__all__ = []
