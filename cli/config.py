"""Configuration file handling for the schemascope CLI.

The file lives at ``~/.schemascope.yaml`` unless ``SCHEMASCOPE_CONFIG``
points elsewhere. It holds named connections (referenced as ``@name`` on the
command line) and defaults for extraction and output options.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from schemascope.models import ExtractionOptions

CONFIG_ENV_VAR = "SCHEMASCOPE_CONFIG"
DEFAULT_CONFIG_NAME = ".schemascope.yaml"

# ============================================================================
# Config Models
# ============================================================================


class ExtractionDefaults(BaseModel):
    """Default extraction switches"""

    type_inference: bool = Field(default=True, description="Infer boolean/GUID columns from names")
    data_sampling: bool = Field(default=True, description="Verify unresolved columns by sampling data")
    views: bool = Field(default=True, description="Include views")
    procedures: bool = Field(default=True, description="Include stored procedures")
    functions: bool = Field(default=True, description="Include scalar functions")
    relationships: bool = Field(default=True, description="Include foreign-key relationships")
    legacy_relationships: bool = Field(default=False, description="Infer relationships from naming conventions")

    def to_options(self, schema_filter: str | None = None) -> ExtractionOptions:
        return ExtractionOptions(
            schema_filter=schema_filter,
            enable_type_inference=self.type_inference,
            enable_data_sampling=self.data_sampling,
            include_views=self.views,
            include_stored_procedures=self.procedures,
            include_user_defined_functions=self.functions,
            include_relationships=self.relationships,
            enable_legacy_relationship_inference=self.legacy_relationships,
        )


class OutputDefaults(BaseModel):
    """Default output settings"""

    format: str = Field(default="json", description="Output format: json or yaml")
    pretty: bool = Field(default=False, description="Pretty-print JSON output")


class Defaults(BaseModel):
    extraction: ExtractionDefaults = Field(default_factory=ExtractionDefaults)
    output: OutputDefaults = Field(default_factory=OutputDefaults)


class Config(BaseModel):
    """Contents of the configuration file"""

    version: str = "1.0"
    connections: dict[str, str] = Field(default_factory=dict, description="Named connection strings")
    defaults: Defaults = Field(default_factory=Defaults)


# ============================================================================
# Loading and Saving
# ============================================================================


def get_config_path() -> Path:
    """Return the configuration file path"""
    custom_path = os.environ.get(CONFIG_ENV_VAR)
    if custom_path:
        return Path(custom_path)
    return Path.home() / DEFAULT_CONFIG_NAME


def load_config() -> Config:
    """Load the configuration file, or defaults when it does not exist.

    Returns:
        The parsed Config

    Raises:
        ValueError: If the file is not valid YAML or holds invalid values
    """
    config_path = get_config_path()
    if not config_path.exists():
        return Config()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e


def save_config(config: Config) -> Path:
    """Write the configuration file.

    Args:
        config: Config to save

    Returns:
        Path the file was written to
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
    return config_path


def init_config(force: bool = False) -> Path:
    """Create a configuration file holding the defaults.

    Args:
        force: Overwrite an existing file

    Returns:
        Path of the new file

    Raises:
        FileExistsError: If the file exists and force is False
    """
    config_path = get_config_path()
    if config_path.exists() and not force:
        raise FileExistsError(f"Config file already exists: {config_path}")
    return save_config(Config())


# ============================================================================
# Accessors
# ============================================================================


def get_connection(name: str, config: Config | None = None) -> str:
    """Look up a named connection.

    Raises:
        KeyError: If no connection has that name
    """
    config = config or load_config()
    if name not in config.connections:
        raise KeyError(f"Connection '{name}' not found in {get_config_path()}")
    return config.connections[name]


def resolve_connection(connection: str, config: Config | None = None) -> str:
    """Expand an ``@name`` reference to its connection string.

    Anything not starting with '@' is returned unchanged.
    """
    if connection.startswith("@"):
        return get_connection(connection[1:], config)
    return connection


def get_extraction_defaults(config: Config | None = None) -> ExtractionDefaults:
    config = config or load_config()
    return config.defaults.extraction


def get_output_defaults(config: Config | None = None) -> OutputDefaults:
    config = config or load_config()
    return config.defaults.output


def validate_config(config: Config) -> list[str]:
    """Check a Config for values pydantic cannot reject on its own.

    Returns:
        Error messages, empty when the config is valid
    """
    errors = []
    if config.version != "1.0":
        errors.append(f"Unsupported config version '{config.version}', expected '1.0'")
    if config.defaults.output.format not in ("json", "yaml"):
        errors.append("'defaults.output.format' must be 'json' or 'yaml'")
    for name, connection in config.connections.items():
        if not connection.strip():
            errors.append(f"Connection '{name}' is empty")
        elif connection.startswith("@"):
            errors.append(f"Connection '{name}' cannot reference another connection")
    return errors
