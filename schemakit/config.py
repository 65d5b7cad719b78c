"""
Configuration module for schemakit.
Handles loading and validation of engine configuration including:
- Trusted-schema mode (skip_syntax)
- Failure mode (collect all failures or fail fast)
- Recursion guard and keyword/format selection
"""
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from typing import List
import yaml
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Well below the interpreter recursion limit
DEFAULT_MAX_DEPTH = 128


class EngineConfig(BaseModel):
    """
    Validation engine configuration.
    """

    skip_syntax: bool = Field(
        default=False,
        description="Skip schema syntax checking entirely. Only for schemas "
                    "that are known to be well formed."
    )

    fail_fast: bool = Field(
        default=False,
        description="Stop at the first validation failure by raising "
                    "ValidationFailureError instead of collecting all failures."
    )

    max_depth: int | None = Field(
        default=DEFAULT_MAX_DEPTH,
        description="Maximum instance nesting depth to descend into "
                    "(None: bounded only by the interpreter recursion limit)",
        ge=1
    )

    default_formats: bool = Field(
        default=True,
        description="Seed the format registry with the formats jsonschema can check"
    )

    disabled_keywords: List[str] = Field(
        default_factory=list,
        description="Built-in keywords not to install at construction"
    )

    class Config:
        """Pydantic model configuration."""
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "skip_syntax": False,
                "fail_fast": False,
                "max_depth": 64,
                "default_formats": True,
                "disabled_keywords": ["uniqueItems"]
            }
        }


def load_config(config_path: str | Path) -> EngineConfig:
    """
    Load engine configuration from YAML file.

    Args:
        config_path: Path to configuration file (YAML format)

    Returns:
        Validated EngineConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config validation fails
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML configuration: {e}") from e

    if not config_data:
        logger.warning(f"Empty config file at {config_path}, using defaults")
        return EngineConfig()

    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config_data).__name__}")

    try:
        config = EngineConfig(**config_data)
    except PydanticValidationError as e:
        raise ValueError(f"Failed to load configuration: {e}") from e

    logger.info(f"Loaded engine configuration from {config_path}")
    logger.info(f"  - Skip syntax: {config.skip_syntax}")
    logger.info(f"  - Fail fast: {config.fail_fast}")
    logger.info(f"  - Disabled keywords: {config.disabled_keywords}")

    return config


def get_default_config() -> EngineConfig:
    """
    Get default engine configuration.

    Returns:
        EngineConfig with syntax checking on and all failures collected
    """
    return EngineConfig(
        skip_syntax=False,
        fail_fast=False,
        max_depth=DEFAULT_MAX_DEPTH,
        default_formats=True,
        disabled_keywords=[]
    )
