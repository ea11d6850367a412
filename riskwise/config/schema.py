# riskwise/config/schema.py
"""
Pydantic configuration models for riskwise.

All models use extra="ignore" to allow unknown YAML keys without crashing.
Risk scoring bands are fixed and deliberately absent here.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class OllamaConfig(BaseModel):
    """Ollama server configuration."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = Field(
        default="http://localhost:11434", description="Ollama API base URL"
    )
    model: str = Field(
        default="qwen2.5:14b-instruct",
        description="Ollama model to use for suggestions",
    )
    fallback_model: str | None = Field(
        default="qwen2.5:7b-instruct",
        description="Fallback model on OOM errors (None to disable)",
    )
    timeout: int = Field(default=120, description="Request timeout in seconds")


class LMStudioConfig(BaseModel):
    """LM Studio server configuration."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = Field(
        default="http://localhost:1234/v1", description="LM Studio API base URL"
    )
    model: str = Field(default="local-model", description="LM Studio model to use for suggestions")
    fallback_model: str | None = Field(
        default=None, description="Fallback model (None = no fallback)"
    )
    timeout: int = Field(default=120, description="Request timeout in seconds")


class StorageConfig(BaseModel):
    """Record storage configuration."""

    model_config = ConfigDict(extra="ignore")

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite", description="Record store backend"
    )
    db_path: str | None = Field(
        default=None,
        description="SQLite database file (None = riskwise.db in the user data dir)",
    )


class TenantConfig(BaseModel):
    """Default UPR and period used when a command doesn't name one."""

    model_config = ConfigDict(extra="ignore")

    upr_id: str | None = Field(default=None, description="Default UPR (risk-owning unit) ID")
    period: str | None = Field(default=None, description="Default reporting period, e.g. 2025")


class IdentifiersConfig(BaseModel):
    """Identifier assignment configuration."""

    model_config = ConfigDict(extra="ignore")

    max_retries: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Re-scan and retry attempts when a code or sequence number is taken",
    )


class CascadeConfig(BaseModel):
    """Cascading delete configuration."""

    model_config = ConfigDict(extra="ignore")

    prefer_batch: bool = Field(
        default=True,
        description="Delete a whole cascade in one transaction when the store supports it",
    )


class SuggestionsConfig(BaseModel):
    """Default suggestion counts."""

    model_config = ConfigDict(extra="ignore")

    potential_risks: int = Field(default=5, ge=1, le=20, description="Potential risks to brainstorm")
    risk_causes: int = Field(default=5, ge=1, le=20, description="Risk causes to brainstorm")
    control_measures: int = Field(
        default=3, ge=1, le=3, description="Control measures to suggest (maximum 3)"
    )


class MonitoringConfig(BaseModel):
    """Risk monitoring configuration."""

    model_config = ConfigDict(extra="ignore")

    default_frequency: Literal["Bulanan", "Triwulanan", "Semesteran", "Tahunan"] = Field(
        default="Bulanan",
        description="Monitoring frequency that sets the default session start and end dates",
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = ConfigDict(extra="ignore")

    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Logging verbosity level"
    )


class RiskwiseConfig(BaseModel):
    """Root configuration for riskwise."""

    model_config = ConfigDict(extra="ignore")

    provider: Literal["ollama", "lm_studio"] = Field(
        default="ollama", description="LLM provider to use"
    )
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    lm_studio: LMStudioConfig = Field(default_factory=LMStudioConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    tenant: TenantConfig = Field(default_factory=TenantConfig)
    identifiers: IdentifiersConfig = Field(default_factory=IdentifiersConfig)
    cascade: CascadeConfig = Field(default_factory=CascadeConfig)
    suggestions: SuggestionsConfig = Field(default_factory=SuggestionsConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
