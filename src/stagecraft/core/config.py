# src/stagecraft/core/config.py
"""
Configuration schema and loading for stagecraft.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction. Every core function
accepts an optional settings object and falls back to the defaults here,
so callers that never load a file get the editor's standard geometry.
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from stagecraft.contracts.enums import LayoutDirection
from stagecraft.contracts.errors import PipelineLoadError
from stagecraft.contracts.pipeline import PipelineConfiguration, Stage


class LayoutSettings(BaseModel):
    """Geometry for the layered layout.

    Every node is treated as a ``node_width`` x ``node_height`` box; the
    layout never looks at rendered sizes.

    Example YAML:
        layout:
          direction: LR
          node_spacing: 80
    """

    model_config = {"frozen": True, "extra": "forbid"}

    direction: LayoutDirection = Field(
        default=LayoutDirection.TB,
        description="Rank direction: TB (top-to-bottom) or LR (left-to-right)",
    )
    node_width: float = Field(default=220.0, gt=0, description="Node footprint width in pixels")
    node_height: float = Field(default=120.0, gt=0, description="Node footprint height in pixels")
    node_spacing: float = Field(default=100.0, ge=0, description="Gap between neighbouring nodes in one rank")
    rank_spacing: float = Field(default=120.0, ge=0, description="Gap between consecutive ranks")
    edge_spacing: float = Field(default=10.0, ge=0, description="Gap reserved next to edges that skip ranks")
    margin_x: float = Field(default=50.0, ge=0, description="Horizontal margin around the drawing")
    margin_y: float = Field(default=50.0, ge=0, description="Vertical margin around the drawing")


class ValidationSettings(BaseModel):
    """Thresholds for advisory validation findings."""

    model_config = {"frozen": True, "extra": "forbid"}

    max_entry_points: int = Field(
        default=3,
        ge=1,
        description="More entry points than this yields a complexity warning",
    )


class StagecraftSettings(BaseModel):
    """Top-level stagecraft configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)


DEFAULT_SETTINGS = StagecraftSettings()


def load_settings(config_path: Path) -> StagecraftSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (STAGECRAFT_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: STAGECRAFT_LAYOUT__NODE_SPACING for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated StagecraftSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="STAGECRAFT",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return StagecraftSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def load_pipeline(pipeline_path: Path) -> PipelineConfiguration:
    """Load a pipeline document from YAML or JSON.

    The document is either a full pipeline configuration (a mapping with
    ``stages``) or a bare list of stages. A bare list is wrapped in a
    configuration named after the file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        PipelineLoadError: If the file is not valid YAML/JSON or has the wrong top-level shape
        ValidationError: If a record fails Pydantic validation
    """
    if not pipeline_path.exists():
        raise FileNotFoundError(f"Pipeline file not found: {pipeline_path}")

    try:
        document = yaml.safe_load(pipeline_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise PipelineLoadError(f"Failed to parse {pipeline_path.name}: {e}") from e

    return parse_pipeline(document, default_name=pipeline_path.stem)


def parse_pipeline(document: Any, *, default_name: str = "pipeline") -> PipelineConfiguration:
    """Build a PipelineConfiguration from an already-decoded document.

    Raises:
        PipelineLoadError: If the document is neither a mapping nor a list
        ValidationError: If a record fails Pydantic validation
    """
    if isinstance(document, list):
        stages = [Stage.model_validate(item) for item in document]
        return PipelineConfiguration(
            id=default_name,
            name=default_name,
            stages=tuple(stages),
            created_at=datetime.now(UTC),
        )
    if isinstance(document, dict):
        if "createdAt" not in document and "created_at" not in document:
            document = {**document, "createdAt": datetime.now(UTC)}
        return PipelineConfiguration.model_validate(
            {"id": default_name, "name": default_name, **document},
        )
    raise PipelineLoadError(f"Pipeline document must be a mapping or a list of stages, got {type(document).__name__}")


__all__ = [
    "DEFAULT_SETTINGS",
    "LayoutSettings",
    "StagecraftSettings",
    "ValidationSettings",
    "load_pipeline",
    "load_settings",
    "parse_pipeline",
]
