"""Configuration loading for caprouter.

Functions:
    resolve_config_path: Pick the config file from an argument or CAPROUTER_CONFIG
    load_config: Load and validate a RouterConfig from YAML
    write_config: Write a RouterConfig as YAML (used by ``caprouter config init``)
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
import yaml

# Load .env from the current directory and ~/.caprouter/
load_dotenv()
load_dotenv(Path.home() / ".caprouter" / ".env")

from caprouter.config.models import RouterConfig, get_default_config  # noqa: E402
from caprouter.core.errors import ConfigError  # noqa: E402

CONFIG_ENV_VAR = "CAPROUTER_CONFIG"


def resolve_config_path(config_path: Path | None = None) -> Path | None:
    """Resolve which configuration file to load.

    Priority:
    1. Explicit ``config_path`` argument
    2. CAPROUTER_CONFIG environment variable
    3. None, meaning the bundled default rule set

    Args:
        config_path: Optional explicit path.

    Returns:
        Path to load, or None for the bundled defaults.
    """
    if config_path is not None:
        return config_path

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    return None


def _format_validation_errors(error: PydanticValidationError) -> str:
    lines = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        lines.append(f"  - {loc}: {item['msg']}")
    return "\n".join(lines)


def parse_config(data: dict[str, Any] | None, *, source: str | None = None) -> RouterConfig:
    """Validate a hierarchical mapping into a RouterConfig.

    Args:
        data: Parsed configuration data (key/value groups per domain).
        source: Where the data came from, for error messages.

    Returns:
        Validated RouterConfig.

    Raises:
        ConfigError: If the data fails schema validation.
    """
    try:
        return RouterConfig.model_validate(data or {})
    except PydanticValidationError as e:
        first_loc = ".".join(str(x) for x in e.errors()[0]["loc"]) if e.errors() else None
        raise ConfigError(
            "Configuration validation failed:\n" + _format_validation_errors(e),
            config_key=first_loc or None,
            config_file=source,
            details={"error_count": e.error_count()},
        ) from e


def load_config(config_path: Path | None = None) -> RouterConfig:
    """Load the routing configuration.

    Args:
        config_path: Path to a YAML file. Falls back to CAPROUTER_CONFIG and
            then to the bundled defaults.

    Returns:
        Validated RouterConfig.

    Raises:
        ConfigError: If the file is missing, malformed or fails validation.
    """
    path = resolve_config_path(config_path)
    if path is None:
        return get_default_config()

    if not path.exists():
        raise ConfigError(
            f"Configuration file not found: {path}. "
            "Run `caprouter config init` to write the default rule set.",
            config_file=str(path),
        )

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            config_file=str(path),
            details={"os_error": str(e)},
        ) from e
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse configuration file: {e}",
            config_file=str(path),
            details={"yaml_error": str(e)},
        ) from e

    if data is not None and not isinstance(data, dict):
        raise ConfigError(
            "Configuration root must be a mapping",
            config_file=str(path),
            details={"root_type": type(data).__name__},
        )

    return parse_config(data, source=str(path))


def write_config(
    config_path: Path,
    config: RouterConfig | None = None,
    *,
    overwrite: bool = False,
) -> Path:
    """Write a configuration as YAML.

    Args:
        config_path: Destination file.
        config: Configuration to write. Defaults to the bundled rule set.
        overwrite: Replace an existing file.

    Returns:
        The written path.

    Raises:
        ConfigError: If the file exists and overwrite is False.
    """
    if config_path.exists() and not overwrite:
        raise ConfigError(
            f"Configuration file already exists: {config_path}",
            config_file=str(config_path),
        )

    config = config or get_default_config()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as f:
        yaml.dump(
            config.model_dump(mode="json", exclude={"logging"}),
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    return config_path
