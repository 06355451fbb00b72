"""Run configuration for tmle-inputs."""

import logging
import tomllib
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

from .utils.validators import (
    ValidationError,
    parse_orders,
    validate_batch_size,
    validate_call_threshold,
    validate_positivity_constraint,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the run inputs are inconsistent or incomplete."""

    pass


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    pass


class Mode(str, Enum):
    """How treatments and parameters are obtained."""

    WITH_PARAM_FILES = "with-param-files"
    WITH_ASB_TRANS = "with-asb-trans"
    FROM_ACTORS = "from-actors"


@dataclass
class ParamFilesOptions:
    """Parameter files are provided, treatments are read from them."""

    param_prefix: str


@dataclass
class AsbTransOptions:
    """Treatments are allele-specific-binding SNPs crossed with trans-actors."""

    asb_prefix: str
    trans_actors: Path
    param_prefix: str | None = None


@dataclass
class FromActorsOptions:
    """Treatments are combined from bQTLs, trans-actors and extra treatments."""

    bqtls: Path | None = None
    trans_actors_prefix: str | None = None
    orders: tuple[int, ...] = (1, 2)


ModeOptions = ParamFilesOptions | AsbTransOptions | FromActorsOptions

MODE_OPTIONS: dict[Mode, type] = {
    Mode.WITH_PARAM_FILES: ParamFilesOptions,
    Mode.WITH_ASB_TRANS: AsbTransOptions,
    Mode.FROM_ACTORS: FromActorsOptions,
}


@dataclass
class RunConfig:
    """Configuration threaded through every step of a run."""

    mode: Mode
    options: ModeOptions
    bgen_prefix: str
    genetic_confounders: Path
    out_prefix: str = "final"
    call_threshold: float = 0.9
    extra_confounders: Path | None = None
    covariates: Path | None = None
    extra_treatments: Path | None = None
    binary_phenotypes: Path | None = None
    continuous_phenotypes: Path | None = None
    phenotype_batch_size: int | None = None
    positivity_constraint: float = 0.0
    genotypes_as_int: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        expected = MODE_OPTIONS[self.mode]
        if not isinstance(self.options, expected):
            raise ConfigurationError(
                f"Mode {self.mode.value} requires {expected.__name__}, "
                f"got {type(self.options).__name__}"
            )
        if self.binary_phenotypes is None and self.continuous_phenotypes is None:
            raise ConfigurationError(
                "At least one of binary_phenotypes or continuous_phenotypes should be specified"
            )
        try:
            self.call_threshold = validate_call_threshold(self.call_threshold)
            self.positivity_constraint = validate_positivity_constraint(
                self.positivity_constraint
            )
            self.phenotype_batch_size = validate_batch_size(self.phenotype_batch_size)
            if isinstance(self.options, FromActorsOptions):
                self.options.orders = parse_orders(self.options.orders)
        except ValidationError as e:
            raise ConfigValidationError(str(e)) from None


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

PATH_FIELDS = {
    "genetic_confounders",
    "extra_confounders",
    "covariates",
    "extra_treatments",
    "binary_phenotypes",
    "continuous_phenotypes",
}


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    try:
        if "call_threshold" in config_dict:
            validate_call_threshold(config_dict["call_threshold"])
        if "positivity_constraint" in config_dict:
            validate_positivity_constraint(config_dict["positivity_constraint"])
        if "phenotype_batch_size" in config_dict:
            validate_batch_size(config_dict["phenotype_batch_size"])
        if "orders" in config_dict:
            parse_orders(config_dict["orders"])
    except (ValidationError, TypeError) as e:
        raise ConfigValidationError(str(e)) from None

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Read the ``[tmle_inputs]`` table of a TOML configuration file.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If any configuration value is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        toml_data = tomllib.load(f)

    config_dict = toml_data.get("tmle_inputs", {})
    validate_config(config_dict)
    return config_dict


def load_config(
    mode: Mode,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> RunConfig:
    """Build a RunConfig from an optional TOML file and explicit overrides.

    Overrides set to None do not replace file values.

    Args:
        mode: Run mode.
        config_path: Optional TOML configuration file.
        overrides: Values given on the command line.

    Returns:
        RunConfig instance with loaded values.
    """
    config_dict = read_config_file(config_path) if config_path else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            config_dict[key] = value
    validate_config(config_dict)

    option_cls = MODE_OPTIONS[mode]
    option_names = {f.name for f in fields(option_cls)}
    option_values = {k: v for k, v in config_dict.items() if k in option_names}
    for key in ("bqtls", "trans_actors"):
        if option_values.get(key) is not None:
            option_values[key] = Path(option_values[key])
    try:
        options = option_cls(**option_values)
    except TypeError as e:
        raise ConfigurationError(f"Missing options for mode {mode.value}: {e}") from None

    run_names = {f.name for f in fields(RunConfig)} - {"mode", "options"}
    run_values: dict[str, Any] = {}
    for key, value in config_dict.items():
        if key in run_names:
            run_values[key] = Path(value) if key in PATH_FIELDS and value is not None else value

    unknown = set(config_dict) - run_names - option_names
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(unknown)))

    for key in ("bgen_prefix", "genetic_confounders"):
        if key not in run_values:
            raise ConfigurationError(f"{key} is required")

    return RunConfig(mode=mode, options=options, **run_values)
