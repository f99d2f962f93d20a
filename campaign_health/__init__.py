"""
Campaign Health Package.

Scoring engine and FastAPI service for the campaign dashboard. Given a
campaign's daily delivery rows, its contract terms and its pacing data, the
engine produces a 0-10 health score from five weighted sub-scores (ROAS,
delivery pacing, burn rate, CTR, overspend risk) together with the
intermediate metrics the dashboard displays.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: Scoring engine

Logging:
    Every module logs through ``logging.getLogger(__name__)``. The package
    installs a NullHandler, so the engine is silent unless the application
    configures logging (main.py does).
"""

import logging

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
