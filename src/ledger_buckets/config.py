"""
Configuration loading for the ledger bucket analysis.

This module handles loading analysis configurations from YAML files and
validation of configuration parameters.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from ledger_buckets.models import AnalysisConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_analysis_config(config_path: str | Path) -> AnalysisConfig:
    """
    Load analysis configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        AnalysisConfig object with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping: {config_path}"
        )

    return _parse_analysis_config(raw_config)


def _parse_analysis_config(raw: dict[str, Any]) -> AnalysisConfig:
    """
    Parse and validate raw configuration dictionary into AnalysisConfig.

    Args:
        raw: Dictionary loaded from YAML

    Returns:
        Validated AnalysisConfig

    Raises:
        ConfigurationError: If required fields are missing or invalid
    """
    if "analysis_id" not in raw:
        raise ConfigurationError("Missing required configuration field: analysis_id")

    analysis_id = str(raw["analysis_id"]).strip()
    if not analysis_id:
        raise ConfigurationError("analysis_id cannot be empty")

    currency = _parse_name(raw.get("currency", "GBP"), "currency").upper()
    market_payee = _parse_name(raw.get("market_payee", "Market"), "market_payee")
    market_growth_category = _parse_name(
        raw.get("market_growth_category", "MarketGrowth"),
        "market_growth_category",
    )

    money_places = _parse_int(raw.get("money_places", 2), "money_places", 0, 8)
    output_dir = str(raw.get("output_dir", "output"))

    return AnalysisConfig(
        analysis_id=analysis_id,
        currency=currency,
        market_payee=market_payee,
        market_growth_category=market_growth_category,
        output_dir=output_dir,
        money_places=money_places,
    )


def _parse_name(value: Any, field_name: str) -> str:
    name = str(value).strip() if value is not None else ""
    if not name:
        raise ConfigurationError(f"{field_name} cannot be empty")
    return name


def _parse_int(value: Any, field_name: str, min_val: int, max_val: int) -> int:
    """
    Parse an integer value with range validation.

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid integer value for {field_name}: {value}")
    try:
        int_value = int(str(value))
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {field_name}: {value}")

    if int_value < min_val or int_value > max_val:
        raise ConfigurationError(
            f"{field_name} must be between {min_val} and {max_val}, got {int_value}"
        )
    return int_value


def parse_date(value: Any, field_name: str) -> date:
    """
    Parse a date value from various formats.

    Args:
        value: The value to parse (string, date or datetime)
        field_name: Name of the field for error messages

    Returns:
        Parsed date object

    Raises:
        ConfigurationError: If the date cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            pass

        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            pass

    raise ConfigurationError(
        f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD"
    )


def create_default_config(
    analysis_id: str,
    output_path: str | Path | None = None,
) -> AnalysisConfig:
    """
    Create an analysis config with default parameters.

    Args:
        analysis_id: Identifier recorded against logged actions
        output_path: Optional path to write config YAML

    Returns:
        AnalysisConfig with default settings
    """
    config = AnalysisConfig(analysis_id=analysis_id)

    if output_path:
        write_config(config, output_path)

    return config


def write_config(config: AnalysisConfig, output_path: str | Path) -> None:
    """
    Write an AnalysisConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "analysis_id": config.analysis_id,
        "currency": config.currency,
        "market_payee": config.market_payee,
        "market_growth_category": config.market_growth_category,
        "output_dir": config.output_dir,
        "money_places": config.money_places,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
