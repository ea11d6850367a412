# riskwise/config/__init__.py
"""Configuration system for riskwise."""

from .loader import get_config_path, get_db_path, load_config
from .schema import (
    CascadeConfig,
    IdentifiersConfig,
    LMStudioConfig,
    MonitoringConfig,
    OllamaConfig,
    OutputConfig,
    RiskwiseConfig,
    StorageConfig,
    SuggestionsConfig,
    TenantConfig,
)

__all__ = [
    "RiskwiseConfig",
    "OllamaConfig",
    "LMStudioConfig",
    "StorageConfig",
    "TenantConfig",
    "IdentifiersConfig",
    "CascadeConfig",
    "SuggestionsConfig",
    "MonitoringConfig",
    "OutputConfig",
    "load_config",
    "get_config_path",
    "get_db_path",
]
