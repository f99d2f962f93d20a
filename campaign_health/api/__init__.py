"""
Campaign Health API package initialization.

This package contains the FastAPI router modules for the campaign health service:
- health: Campaign health scoring (single, batch), pacing metrics and
  contract terms upload
"""

# Import router modules
from campaign_health.api.health import router as campaign_health_router

# Export all routers for selective imports
__all__ = [
    "campaign_health_router",
]
