"""Settings and budget file loading with environment overrides.

Settings come from a YAML file; budgets come from a ``budget.json`` style
file (JSON or YAML) referenced by ``budgets_path`` or given inline under
``budgets``. Everything is validated through the pydantic models, so an
unknown metric id or a malformed path pattern is rejected here rather than
during an audit.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from ..models.budget import Budget, Settings


logger = logging.getLogger(__name__)


ENV_THROTTLING_METHOD = "PAGEAUDIT_THROTTLING_METHOD"
ENV_BUDGETS_PATH = "PAGEAUDIT_BUDGETS_PATH"


def _read_structured_file(path: Path) -> Any:
    """Parse a JSON or YAML file, chosen by extension."""
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                return json.load(f)
            return yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}")
    except IOError as e:
        raise ConfigurationError(f"Failed to read {path}: {e}")


def _format_validation_error(error: ValidationError) -> List[str]:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()))
        messages.append(f"{location}: {detail.get('msg')}" if location else detail.get("msg", ""))
    return messages


def validate_budgets(budget_data: Any) -> List[str]:
    """Validate raw budget data without raising.

    Returns:
        List of validation error messages (empty if valid)
    """
    if budget_data is None:
        return []
    if not isinstance(budget_data, list):
        return ["Budgets must be a list of budget entries"]

    errors = []
    for index, entry in enumerate(budget_data):
        try:
            Budget.model_validate(entry)
        except ValidationError as e:
            errors.extend(f"budgets[{index}].{message}" for message in _format_validation_error(e))
    return errors


def parse_budgets(budget_data: Any) -> Optional[List[Budget]]:
    """Validate raw budget data into ``Budget`` models.

    Raises:
        ConfigurationError: If any entry is invalid
    """
    if budget_data is None:
        return None
    errors = validate_budgets(budget_data)
    if errors:
        raise ConfigurationError("Invalid budgets: " + "; ".join(errors))
    return [Budget.model_validate(entry) for entry in budget_data]


def load_budgets(budget_path: Union[str, Path]) -> List[Budget]:
    """Load budgets from a ``budget.json`` style file.

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    budget_path = Path(budget_path)
    budgets = parse_budgets(_read_structured_file(budget_path))
    if budgets is None:
        raise ConfigurationError(f"Budget file is empty: {budget_path}")
    logger.info(f"Loaded {len(budgets)} budgets from {budget_path}")
    return budgets


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _load_environment_variables() -> Dict[str, Any]:
    """Settings overrides from environment variables."""
    env_config = {}

    if throttling := os.getenv(ENV_THROTTLING_METHOD):
        env_config['throttling_method'] = throttling

    if budgets_path := os.getenv(ENV_BUDGETS_PATH):
        env_config['budgets_path'] = budgets_path

    return env_config


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Settings:
    """Load run settings from YAML with environment and explicit overrides.

    Precedence, lowest first: config file, environment variables, overrides.
    A ``budgets_path`` key is resolved relative to the config file.

    Args:
        config_path: Optional path to a YAML settings file
        overrides: Additional settings overrides to apply

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If loading or validation fails

    Example:
        >>> settings = load_settings("pageaudit.yaml", overrides={"throttling_method": "provided"})
        >>> settings.throttling_method.value
        'provided'
    """
    config_data: Dict[str, Any] = {}
    base_dir = Path.cwd()

    if config_path is not None:
        config_path = Path(config_path)
        config_data = _read_structured_file(config_path) or {}
        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a YAML dictionary")
        base_dir = config_path.parent

    config_data = _deep_merge(config_data, _load_environment_variables())
    if overrides:
        config_data = _deep_merge(config_data, overrides)
        logger.debug("Applied additional settings overrides")

    if "throttlingMethod" in config_data:
        config_data["throttling_method"] = config_data.pop("throttlingMethod")

    budgets_path = config_data.pop("budgets_path", None)
    if budgets_path is not None:
        if "budgets" in config_data:
            raise ConfigurationError("Specify either 'budgets' or 'budgets_path', not both")
        budgets_path = Path(budgets_path)
        if not budgets_path.is_absolute():
            budgets_path = base_dir / budgets_path
        config_data["budgets"] = load_budgets(budgets_path)
    elif "budgets" in config_data:
        config_data["budgets"] = parse_budgets(config_data["budgets"])

    try:
        settings = Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError("Invalid settings: " + "; ".join(_format_validation_error(e)))

    logger.info(
        f"Settings loaded: throttling={settings.throttling_method.value}, "
        f"budgets={'disabled' if settings.budgets is None else len(settings.budgets)}"
    )
    return settings
