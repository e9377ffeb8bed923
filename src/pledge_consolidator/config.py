"""Configuration loading and validation for the pledge consolidator."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from pledge_consolidator.models.household import MergePolicy
from pledge_consolidator.utils.logging_config import get_logger

logger = get_logger(__name__)

# Environment variable that overrides the category keyword
CATEGORY_KEYWORD_ENV = "PLEDGE_CATEGORY_KEYWORD"


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


# Default signature of the transactions export
DEFAULT_CATEGORY_KEYWORD = "Hineini"
DEFAULT_REQUIRED_COLUMNS = ["Type", "Charge", "Account ID", "Primary's Birthday"]
DEFAULT_OPTIONAL_COLUMNS = [
    "Date", "ID", "Member Since", "Join Date", "Zip", "Type External ID", "Date Entered",
]
DEFAULT_COLUMNS = {
    "type": "Type",
    "charge": "Charge",
    "account_id": "Account ID",
    "birthday": "Primary's Birthday",
    "zip": "Zip",
}

# Roles the row parser cannot work without
REQUIRED_ROLES = ("type", "charge", "account_id", "birthday")


@dataclass
class ImportConfig:
    """Configuration for transaction ingestion.

    Attributes:
        category_keyword: Type labels containing this text are in scope.
        required_columns: Headers that must all be present for a high-confidence match.
        optional_columns: Headers that only raise detection confidence.
        columns: Column role (type, charge, account_id, birthday, zip) to header name.
        merge_policy: Which file supplies age/zip for accounts seen in several files.
        max_workers: Files parsed concurrently (1 parses sequentially).
    """

    category_keyword: str = DEFAULT_CATEGORY_KEYWORD
    required_columns: list[str] = field(default_factory=lambda: list(DEFAULT_REQUIRED_COLUMNS))
    optional_columns: list[str] = field(default_factory=lambda: list(DEFAULT_OPTIONAL_COLUMNS))
    columns: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLUMNS))
    merge_policy: MergePolicy = MergePolicy.FIRST_WINS
    max_workers: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ImportConfig":
        """Create from dictionary."""
        keyword = str(data.get("category_keyword", DEFAULT_CATEGORY_KEYWORD)).strip()
        if not keyword:
            raise ConfigError("'category_keyword' must not be empty")

        columns = dict(DEFAULT_COLUMNS)
        raw_columns = data.get("columns")
        if raw_columns is not None:
            if not isinstance(raw_columns, dict):
                raise ConfigError(f"'columns' must be a mapping, got {type(raw_columns).__name__}")
            unknown = set(raw_columns) - set(DEFAULT_COLUMNS)
            if unknown:
                raise ConfigError(f"Unknown column roles: {', '.join(sorted(unknown))}")
            columns.update({str(k): str(v) for k, v in raw_columns.items()})

        policy_str = str(data.get("merge_policy", MergePolicy.FIRST_WINS.value))
        try:
            merge_policy = MergePolicy(policy_str)
        except ValueError:
            valid = ", ".join(p.value for p in MergePolicy)
            raise ConfigError(f"Invalid merge_policy '{policy_str}' (expected one of: {valid})") from None

        max_workers = int(data.get("max_workers", 1))  # type: ignore[arg-type]
        if max_workers < 1:
            raise ConfigError("'max_workers' must be at least 1")

        return cls(
            category_keyword=keyword,
            required_columns=_string_list(data, "required_columns", DEFAULT_REQUIRED_COLUMNS),
            optional_columns=_string_list(data, "optional_columns", DEFAULT_OPTIONAL_COLUMNS),
            columns=columns,
            merge_policy=merge_policy,
            max_workers=max_workers,
        )

    def column_for(self, role: str) -> str:
        """Header name configured for a column role."""
        return self.columns.get(role, DEFAULT_COLUMNS[role])


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        decimal_places: Number of decimal places for amounts.
        include_account_id: Whether the comparison CSV carries account IDs.
    """

    decimal_places: int = 2
    include_account_id: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "OutputConfig":
        """Create from dictionary."""
        return cls(
            decimal_places=int(data.get("decimal_places", 2)),  # type: ignore[arg-type]
            include_account_id=bool(data.get("include_account_id", True)),
        )


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = "pledge_consolidator.log"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", "pledge_consolidator.log")),
        )


@dataclass
class Config:
    """Main configuration container."""

    importing: ImportConfig = field(default_factory=ImportConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _string_list(data: dict[str, object], key: str, default: list[str]) -> list[str]:
    value = data.get(key)
    if value is None:
        return list(default)
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the top level is not a mapping.
        yaml.YAMLError: If file is invalid YAML.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        content = yaml.safe_load(f)

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def load_settings(path: Path) -> Config:
    """Load settings from settings.yaml.

    Args:
        path: Path to settings.yaml.

    Returns:
        Config built from the file's sections.
    """
    data = load_yaml_file(path)

    config = Config()
    for section, loader, attr in (
        ("import", ImportConfig.from_dict, "importing"),
        ("output", OutputConfig.from_dict, "output"),
        ("logging", LoggingConfig.from_dict, "logging"),
    ):
        if section not in data or data[section] is None:
            continue
        section_data = data[section]
        if not isinstance(section_data, dict):
            raise ConfigError(f"'{section}' must be a mapping, got {type(section_data).__name__}")
        setattr(config, attr, loader(section_data))

    return config


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load complete configuration.

    The settings file is optional; defaults describe the standard
    transactions export. ``PLEDGE_CATEGORY_KEYWORD`` overrides the keyword.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If the settings file is invalid.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    if settings_path.exists():
        config = load_settings(settings_path)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        config = Config()
        logger.info(f"Settings file not found: {settings_path}, using defaults")

    env_keyword = os.environ.get(CATEGORY_KEYWORD_ENV, "").strip()
    if env_keyword:
        config.importing.category_keyword = env_keyword
        logger.info(f"Category keyword overridden from {CATEGORY_KEYWORD_ENV}")

    return config
