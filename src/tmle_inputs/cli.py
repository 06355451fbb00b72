"""tmle-inputs: prepare TMLE inputs for genetic association studies."""

import logging
import tomllib
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigurationError, Mode, RunConfig, load_config
from .parameters.enumerator import NoRemainingParamsError
from .pipeline import RunResult, tmle_inputs


def version_callback(value: bool) -> None:
    if value:
        print(__version__)
        raise typer.Exit()


app = typer.Typer(
    name="tmle-inputs",
    help="Prepare datasets and parameter files for TMLE of genetic effects",
)
console = Console()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = None,
) -> None:
    pass


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Configure logging based on verbosity flags."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("tmle_inputs").setLevel(level)


def add_log_file(log_file: Path | None) -> None:
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logging.getLogger("tmle_inputs").addHandler(file_handler)


BgenPrefix = Annotated[
    str | None,
    typer.Option("--bgen-prefix", help="Prefix of the BGEN files holding the genotypes"),
]
GeneticConfounders = Annotated[
    Path | None,
    typer.Option("--genetic-confounders", help="CSV of genetic confounders (e.g. PCs)"),
]
OutPrefix = Annotated[
    str | None, typer.Option("--out-prefix", "-o", help="Prefix of every output file")
]
CallThreshold = Annotated[
    float | None,
    typer.Option("--call-threshold", help="Minimum probability to call a genotype"),
]
ExtraConfounders = Annotated[
    Path | None, typer.Option("--extra-confounders", help="CSV of additional confounders")
]
Covariates = Annotated[Path | None, typer.Option("--covariates", help="CSV of covariates")]
ExtraTreatments = Annotated[
    Path | None, typer.Option("--extra-treatments", help="CSV of non-genetic treatments")
]
BinaryPhenotypes = Annotated[
    Path | None, typer.Option("--binary-phenotypes", help="CSV of binary phenotypes")
]
ContinuousPhenotypes = Annotated[
    Path | None, typer.Option("--continuous-phenotypes", help="CSV of continuous phenotypes")
]
PhenotypeBatchSize = Annotated[
    int | None,
    typer.Option("--phenotype-batch-size", help="Maximum number of phenotypes per parameter file"),
]
PositivityConstraint = Annotated[
    float | None,
    typer.Option(
        "--positivity-constraint",
        help="Minimum frequency of every treatment cell of a parameter",
    ),
]
ConfigFile = Annotated[
    Path | None, typer.Option("--config", "-c", help="TOML configuration file")
]
LogFile = Annotated[Path | None, typer.Option("--log", help="Write log to file")]
Verbose = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging")]
Quiet = Annotated[bool, typer.Option("--quiet", "-q", help="Suppress non-error output")]


def _common_overrides(
    bgen_prefix: str | None,
    genetic_confounders: Path | None,
    out_prefix: str | None,
    call_threshold: float | None,
    extra_confounders: Path | None,
    covariates: Path | None,
    extra_treatments: Path | None,
    binary_phenotypes: Path | None,
    continuous_phenotypes: Path | None,
    phenotype_batch_size: int | None,
    positivity_constraint: float | None,
) -> dict[str, Any]:
    return {
        "bgen_prefix": bgen_prefix,
        "genetic_confounders": genetic_confounders,
        "out_prefix": out_prefix,
        "call_threshold": call_threshold,
        "extra_confounders": extra_confounders,
        "covariates": covariates,
        "extra_treatments": extra_treatments,
        "binary_phenotypes": binary_phenotypes,
        "continuous_phenotypes": continuous_phenotypes,
        "phenotype_batch_size": phenotype_batch_size,
        "positivity_constraint": positivity_constraint,
    }


def _load_run_config(
    mode: Mode,
    config_file: Path | None,
    overrides: dict[str, Any],
    verbose: bool,
    quiet: bool,
) -> RunConfig:
    try:
        config = load_config(mode, config_file, overrides)
    except (ConfigurationError, FileNotFoundError, tomllib.TOMLDecodeError) as e:
        console.print(f"[red]Configuration Error: {e}[/red]")
        raise typer.Exit(1) from None

    if not verbose and not quiet:
        logging.getLogger("tmle_inputs").setLevel(config.log_level.upper())
    return config


def _print_summary(result: RunResult) -> None:
    table = Table(title="TMLE inputs")
    table.add_column("Output", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Samples", f"{result.dataset.n_samples:,}")
    table.add_row("Treatments", str(len(result.variables.treatments)))
    table.add_row("Data files", str(len(result.summary.data_files)))
    for outcome_type, paths in result.summary.parameter_files.items():
        table.add_row(f"{outcome_type.capitalize()} parameter files", str(len(paths)))
    console.print(table)


def _run(config: RunConfig, quiet: bool) -> None:
    try:
        result = tmle_inputs(config)
    except NoRemainingParamsError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("[yellow]Consider lowering --positivity-constraint[/yellow]")
        raise typer.Exit(1) from None
    except (ConfigurationError, LookupError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if not quiet:
        _print_summary(result)
        console.print(
            f"[green]✓[/green] Wrote {result.summary.n_parameter_files} parameter files "
            f"to {config.out_prefix}.*"
        )


@app.command("with-param-files")
def with_param_files(
    param_prefix: Annotated[
        str | None,
        typer.Option("--param-prefix", "-p", help="Prefix of the YAML parameter files"),
    ] = None,
    bgen_prefix: BgenPrefix = None,
    genetic_confounders: GeneticConfounders = None,
    out_prefix: OutPrefix = None,
    call_threshold: CallThreshold = None,
    extra_confounders: ExtraConfounders = None,
    covariates: Covariates = None,
    extra_treatments: ExtraTreatments = None,
    binary_phenotypes: BinaryPhenotypes = None,
    continuous_phenotypes: ContinuousPhenotypes = None,
    phenotype_batch_size: PhenotypeBatchSize = None,
    positivity_constraint: PositivityConstraint = None,
    config_file: ConfigFile = None,
    log_file: LogFile = None,
    verbose: Verbose = False,
    quiet: Quiet = False,
) -> None:
    """Prepare inputs for the parameters listed in YAML parameter files.

    Treatments are read from the parameter files. Files whose treatments
    cannot be found in the BGEN files or the extra treatments are skipped.
    """
    setup_logging(verbose, quiet)
    add_log_file(log_file)

    overrides = _common_overrides(
        bgen_prefix,
        genetic_confounders,
        out_prefix,
        call_threshold,
        extra_confounders,
        covariates,
        extra_treatments,
        binary_phenotypes,
        continuous_phenotypes,
        phenotype_batch_size,
        positivity_constraint,
    )
    overrides["param_prefix"] = param_prefix
    config = _load_run_config(Mode.WITH_PARAM_FILES, config_file, overrides, verbose, quiet)
    _run(config, quiet)


@app.command("with-asb-trans")
def with_asb_trans(
    asb_prefix: Annotated[
        str | None,
        typer.Option("--asb-prefix", help="Prefix of the allele-specific-binding SNP files"),
    ] = None,
    trans_actors: Annotated[
        Path | None,
        typer.Option("--trans-actors", help="CSV of trans-acting SNPs with an ID column"),
    ] = None,
    param_prefix: Annotated[
        str | None,
        typer.Option(
            "--param-prefix",
            "-p",
            help="Prefix of YAML templates using the ASB_SNP and TRANS_ACTOR placeholders",
        ),
    ] = None,
    bgen_prefix: BgenPrefix = None,
    genetic_confounders: GeneticConfounders = None,
    out_prefix: OutPrefix = None,
    call_threshold: CallThreshold = None,
    extra_confounders: ExtraConfounders = None,
    covariates: Covariates = None,
    extra_treatments: ExtraTreatments = None,
    binary_phenotypes: BinaryPhenotypes = None,
    continuous_phenotypes: ContinuousPhenotypes = None,
    phenotype_batch_size: PhenotypeBatchSize = None,
    positivity_constraint: PositivityConstraint = None,
    config_file: ConfigFile = None,
    log_file: LogFile = None,
    verbose: Verbose = False,
    quiet: Quiet = False,
) -> None:
    """Prepare inputs for ASB SNPs interacting with trans-actors."""
    setup_logging(verbose, quiet)
    add_log_file(log_file)

    overrides = _common_overrides(
        bgen_prefix,
        genetic_confounders,
        out_prefix,
        call_threshold,
        extra_confounders,
        covariates,
        extra_treatments,
        binary_phenotypes,
        continuous_phenotypes,
        phenotype_batch_size,
        positivity_constraint,
    )
    overrides.update(asb_prefix=asb_prefix, trans_actors=trans_actors, param_prefix=param_prefix)
    config = _load_run_config(Mode.WITH_ASB_TRANS, config_file, overrides, verbose, quiet)
    _run(config, quiet)


@app.command("from-actors")
def from_actors(
    bqtls: Annotated[
        Path | None, typer.Option("--bqtls", help="CSV of binding QTLs with ID and CHR columns")
    ] = None,
    trans_actors_prefix: Annotated[
        str | None,
        typer.Option("--trans-actors-prefix", help="Prefix of the trans-actor CSV files"),
    ] = None,
    orders: Annotated[
        str | None,
        typer.Option("--orders", help="Comma separated interaction orders, e.g. 1,2"),
    ] = None,
    genotypes_as_int: Annotated[
        bool | None,
        typer.Option(
            "--genotypes-as-int/--genotypes-as-str",
            help="Encode genotypes as minor allele counts or as allele strings",
        ),
    ] = None,
    bgen_prefix: BgenPrefix = None,
    genetic_confounders: GeneticConfounders = None,
    out_prefix: OutPrefix = None,
    call_threshold: CallThreshold = None,
    extra_confounders: ExtraConfounders = None,
    covariates: Covariates = None,
    extra_treatments: ExtraTreatments = None,
    binary_phenotypes: BinaryPhenotypes = None,
    continuous_phenotypes: ContinuousPhenotypes = None,
    phenotype_batch_size: PhenotypeBatchSize = None,
    positivity_constraint: PositivityConstraint = None,
    config_file: ConfigFile = None,
    log_file: LogFile = None,
    verbose: Verbose = False,
    quiet: Quiet = False,
) -> None:
    """Prepare inputs for bQTLs combined with trans-actors and extra treatments.

    At least two of --bqtls, --trans-actors-prefix and --extra-treatments
    must be given.
    """
    setup_logging(verbose, quiet)
    add_log_file(log_file)

    overrides = _common_overrides(
        bgen_prefix,
        genetic_confounders,
        out_prefix,
        call_threshold,
        extra_confounders,
        covariates,
        extra_treatments,
        binary_phenotypes,
        continuous_phenotypes,
        phenotype_batch_size,
        positivity_constraint,
    )
    overrides.update(
        bqtls=bqtls,
        trans_actors_prefix=trans_actors_prefix,
        orders=orders,
        genotypes_as_int=genotypes_as_int,
    )
    config = _load_run_config(Mode.FROM_ACTORS, config_file, overrides, verbose, quiet)
    _run(config, quiet)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
