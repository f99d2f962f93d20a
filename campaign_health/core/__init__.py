"""
Core infrastructure package for the Campaign Health service.

Provides:
- Configuration management via pydantic-settings
- The scoring policy model (ScoringConfig)
- FastAPI dependency injection utilities

This module re-exports key components from submodules so callers can write:

    from campaign_health.core import get_scoring_config, ScoringConfigDep

Components Re-exported:
    Settings: Pydantic settings class with all configuration parameters
    ScoringConfig: Frozen scoring policy (weights, bands, multipliers)
    get_settings: Function returning the cached Settings singleton
    get_scoring_config: Function returning the cached ScoringConfig
    get_settings_dependency: FastAPI dependency returning Settings
    get_scoring_config_dependency: FastAPI dependency returning ScoringConfig
    SettingsDep: Type alias for Settings dependency injection
    ScoringConfigDep: Type alias for ScoringConfig dependency injection
"""

# =============================================================================
# Re-exports from campaign_health.core.config
# =============================================================================
from campaign_health.core.config import (
    ScoringConfig,
    Settings,
    get_scoring_config,
    get_settings,
)

# =============================================================================
# Re-exports from campaign_health.core.dependencies
# =============================================================================
from campaign_health.core.dependencies import (
    ScoringConfigDep,
    SettingsDep,
    get_scoring_config_dependency,
    get_settings_dependency,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'ScoringConfig',
    'get_settings',
    'get_scoring_config',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'get_scoring_config_dependency',
    'SettingsDep',
    'ScoringConfigDep',
]
