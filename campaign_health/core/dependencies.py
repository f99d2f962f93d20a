"""
FastAPI dependency injection module for the Campaign Health service.

Provides reusable dependencies for configuration access so endpoint handlers
never reach for module-level singletons directly, and tests can override them
through ``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_scoring_config_dependency: Returns the cached ScoringConfig
- SettingsDep: Type alias for injecting Settings into endpoints
- ScoringConfigDep: Type alias for injecting ScoringConfig into endpoints

Usage Examples:
    @router.post("/campaign-health")
    async def score(request: CampaignHealthRequest, config: ScoringConfigDep):
        return calculate_campaign_health(..., config=config)
"""

from typing import Annotated

from fastapi import Depends

from campaign_health.core.config import (
    ScoringConfig,
    Settings,
    get_scoring_config,
    get_settings,
)


# =============================================================================
# Settings Dependencies
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the application settings for dependency injection.

    Returns:
        Settings: The cached application settings singleton.
    """
    return get_settings()


def get_scoring_config_dependency() -> ScoringConfig:
    """
    Return the scoring policy for dependency injection.

    Returns:
        ScoringConfig: The cached scoring policy built from settings.
    """
    return get_scoring_config()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

ScoringConfigDep = Annotated[ScoringConfig, Depends(get_scoring_config_dependency)]
