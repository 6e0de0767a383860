"""Pipeline configuration models and loader.

The pipeline configuration is loaded once at startup from a JSON file.
Guardrail sections can later be replaced through
``EthicalGuardrails.update_config`` and performance settings through
``MonitoringPipeline.update_config``.

Usage:
    from competitive_intel.config.pipeline_config import load_pipeline_config

    config = load_pipeline_config("pipeline.json")
    config.performance.batch_size  # 10
"""

import json
from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from competitive_intel.data_management.schemas import DataSource, RateLimit
from competitive_intel.exceptions import ConfigurationError


class EthicalCheckConfig(BaseModel):
    enabled: bool = True
    check_robots_txt: bool = True
    require_public_sources: bool = True
    prohibit_insider_info: bool = True


class SourceValidationConfig(BaseModel):
    allowed_domains: list[str] = Field(default_factory=list)
    blacklisted_domains: list[str] = Field(default_factory=list)
    minimum_reliability: float = Field(default=0.6, ge=0.0, le=1.0)
    prohibited_sources: list[str] = Field(default_factory=list)
    prohibited_source_types: list[str] = Field(default_factory=lambda: ["social"])


class ContentFilteringConfig(BaseModel):
    filter_low_confidence: bool = True
    require_evidence: bool = True
    flag_speculation: bool = True
    minimum_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    evidence_confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    sensitive_content_handling: Literal["block", "flag", "allow"] = "flag"


class ComplianceConfig(BaseModel):
    gdpr_compliant: bool = True
    ccpa_compliant: bool = True
    retention_limits: bool = True
    data_retention_days: int = Field(default=90, ge=1)


class GuardrailsConfig(BaseModel):
    """Guardrail sections, each replaceable as a whole at runtime."""

    ethical_checks: EthicalCheckConfig = Field(default_factory=EthicalCheckConfig)
    source_validation: SourceValidationConfig = Field(default_factory=SourceValidationConfig)
    content_filtering: ContentFilteringConfig = Field(default_factory=ContentFilteringConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)


class MonitoringSettings(BaseModel):
    """Collector cadence and failure alerting."""

    default_schedule: Optional[str] = Field(
        default=None,
        description="Cron schedule for collectors without one; per-kind defaults when unset",
    )
    alert_on_failure: bool = True


class AnalysisSettings(BaseModel):
    """Verification thresholds and cross-reference sources.

    A stored signal counts as verified only when it is factual and its
    verification confidence reaches ``confidence_threshold``. ``minimum_evidence``
    supporting cross-references make a signal confirmed.
    """

    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    minimum_evidence: int = Field(default=2, ge=1)
    cross_reference_concurrency: int = Field(default=5, ge=1)
    cross_reference_sources: list[DataSource] = Field(default_factory=list)


class PerformanceSettings(BaseModel):
    """Batch loop and resource limits."""

    batch_size: int = Field(default=10, ge=1)
    max_concurrency: int = Field(default=10, ge=1)
    loop_interval: float = Field(default=1.0, gt=0)
    error_backoff: float = Field(default=5.0, ge=0)
    item_timeout: Optional[float] = Field(default=None, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    max_concurrent_collectors: int = Field(default=10, ge=1)
    max_queue_size: int = Field(default=0, ge=0, description="0 means unbounded")


class ScrapingSelectors(BaseModel):
    """CSS selectors applied to a scraped page."""

    title: str = "h1"
    content: str = "main"
    pricing: Optional[str] = None
    features: Optional[str] = None


class JobBoardSelectors(BaseModel):
    job_items: str
    title: str
    company: str
    location: str = ".location"
    description: str = ".description"
    date: str = ".date"
    link: str = "a"


class JobBoardConfig(BaseModel):
    """One job board search page and the selectors for its listings."""

    name: str
    base_url: str
    search_url: str
    selectors: JobBoardSelectors


class CollectorSpec(BaseModel):
    """Declarative collector definition for config-driven setup."""

    kind: Literal["rss", "web_scraping", "job_board"]
    competitor_id: str
    competitor_name: str = ""
    url: str = ""
    schedule: Optional[str] = None
    rate_limit: Optional[RateLimit] = None
    reliability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    selectors: Optional[ScrapingSelectors] = None
    job_boards: list[JobBoardConfig] = Field(default_factory=list)


class PipelineConfig(BaseModel):
    guardrails: GuardrailsConfig = Field(default_factory=GuardrailsConfig)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    collectors: list[CollectorSpec] = Field(default_factory=list)


def load_pipeline_config(
    source: Union[str, Path, dict[str, Any], None] = None,
) -> PipelineConfig:
    """
    Load pipeline configuration from a JSON file or a mapping.

    Args:
        source: Path to a JSON file, an already-parsed mapping, or None for defaults

    Returns:
        Validated PipelineConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if source is None:
        return PipelineConfig()

    if isinstance(source, dict):
        data = source
    else:
        path = Path(source)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Configuration file is not valid JSON: {path}: {e}") from e

    try:
        return PipelineConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid pipeline configuration: {e}") from e
