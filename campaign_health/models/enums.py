"""
Enumeration definitions for the Campaign Health service.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in Pydantic models and JSON responses, matching the tags the dashboard reads.
"""

from enum import Enum


class BurnRateConfidence(str, Enum):
    """
    Confidence tier of a burn-rate estimate.

    Indicates how much trailing delivery history backed the estimate:
    - 7-day: At least seven dated rows available
    - 3-day: Three to six rows available
    - 1-day: One or two rows available
    - overall-average: No usable rows, flight-to-date average used (spend only)
    - no-data: Nothing to estimate from

    Spend estimates may additionally carry a ``-capped`` suffix (see
    CAPPED_SUFFIX) when the chosen rate was clamped to the spend ceiling.
    """
    SEVEN_DAY = "7-day"
    THREE_DAY = "3-day"
    ONE_DAY = "1-day"
    OVERALL_AVERAGE = "overall-average"
    NO_DATA = "no-data"


CAPPED_SUFFIX = "-capped"


class HealthStatus(str, Enum):
    """
    Display status derived from the composite health score.

    - healthy: score >= 7
    - warning: 4 <= score < 7
    - critical: score < 4 with delivery data present
    - no-data: the campaign had no delivery rows; score 0 is not a judgement
    """
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    NO_DATA = "no-data"


class ContractTermsSource(str, Enum):
    """
    Shape a contract terms record arrived in.

    - upload: Freeform spreadsheet upload ("Campaign Name", "Budget", ...)
    - database: Normalized table row (campaign_name, budget, ...)
    """
    UPLOAD = "upload"
    DATABASE = "database"
