"""End-to-end preparation of TMLE inputs for each run mode."""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from .actors.catalog import (
    all_variants,
    asb_snps,
    trans_actors,
    treatments_from_actors,
    unique_in_order,
)
from .config import (
    AsbTransOptions,
    ConfigurationError,
    FromActorsOptions,
    Mode,
    ParamFilesOptions,
    RunConfig,
)
from .dataset.assembler import (
    TMLEDataset,
    Variables,
    assemble_dataset,
    get_variables,
    read_data,
    select_available_treatments,
    variable_columns,
)
from .export.writer import WriteSummary, write_tmle_inputs
from .genotypes.bgen_source import BgenGenotypeSource
from .genotypes.decoder import GenotypeSource, call_variants
from .models import ParameterFile
from .parameters.enumerator import (
    NoRemainingParamsError,
    group_parameters,
    parameters_from_actors,
    parameters_from_asb_trans,
)
from .parameters.templates import (
    asb_trans_documents,
    filter_by_positivity,
    parse_template,
    read_parameter_templates,
    template_treatments,
)

logger = logging.getLogger(__name__)


@dataclass
class InputTables:
    """SAMPLE_ID keyed input tables of a run."""

    genetic_confounders: pd.DataFrame
    extra_confounders: pd.DataFrame | None = None
    covariates: pd.DataFrame | None = None
    extra_treatments: pd.DataFrame | None = None
    binary_phenotypes: pd.DataFrame | None = None
    continuous_phenotypes: pd.DataFrame | None = None

    @property
    def extra_treatment_names(self) -> list[str]:
        return list(variable_columns(self.extra_treatments))


@dataclass
class RunResult:
    """What a run produced."""

    dataset: TMLEDataset
    variables: Variables
    parameter_files: list[ParameterFile]
    summary: WriteSummary


def read_inputs(config: RunConfig) -> InputTables:
    return InputTables(
        genetic_confounders=read_data(config.genetic_confounders),
        extra_confounders=read_data(config.extra_confounders),
        covariates=read_data(config.covariates),
        extra_treatments=read_data(config.extra_treatments),
        binary_phenotypes=read_data(config.binary_phenotypes),
        continuous_phenotypes=read_data(config.continuous_phenotypes),
    )


def open_genotype_source(bgen_prefix: str | Path) -> BgenGenotypeSource:
    return BgenGenotypeSource.from_prefix(bgen_prefix)


@contextmanager
def _genotype_source(config: RunConfig, source: GenotypeSource | None) -> Iterator[GenotypeSource]:
    if source is not None:
        yield source
        return
    with open_genotype_source(config.bgen_prefix) as opened:
        yield opened


def _assemble(
    config: RunConfig,
    inputs: InputTables,
    genotypes: pd.DataFrame | None,
    treatment_names: Sequence[str],
) -> tuple[TMLEDataset, Variables]:
    dataset = assemble_dataset(
        genetic_confounders=inputs.genetic_confounders,
        genotypes=genotypes,
        extra_confounders=inputs.extra_confounders,
        extra_treatments=inputs.extra_treatments,
        covariates=inputs.covariates,
        binary_phenotypes=inputs.binary_phenotypes,
        continuous_phenotypes=inputs.continuous_phenotypes,
        treatment_names=treatment_names,
    )
    return dataset, get_variables(dataset)


def _files_from_documents(
    documents: Sequence[tuple[Path, dict[str, Any]]],
    available: Sequence[str],
    variables: Variables,
    dataset: TMLEDataset,
    positivity_constraint: float,
) -> list[ParameterFile]:
    available = set(available)
    files = [
        parse_template(document, path, variables)
        for path, document in documents
        if set(template_treatments(document)) <= available
    ]
    files = filter_by_positivity(files, dataset.treatments, positivity_constraint)
    if not files:
        raise NoRemainingParamsError(positivity_constraint)
    return files


def tmle_inputs_from_param_files(
    config: RunConfig,
    genotype_source: GenotypeSource | None = None,
) -> RunResult:
    """Parameter files name the treatments; SNPs among them are called."""
    options: ParamFilesOptions = config.options
    inputs = read_inputs(config)
    templates = read_parameter_templates(options.param_prefix)

    extra_names = inputs.extra_treatment_names
    requested = unique_in_order(
        t for _, document in templates for t in template_treatments(document)
    )
    snp_candidates = [t for t in requested if t not in extra_names]

    genotypes = None
    snps: list[str] = []
    if snp_candidates:
        with _genotype_source(config, genotype_source) as source:
            snps = [t for t in snp_candidates if source.has_variant(t)]
            if snps:
                genotypes = call_variants(
                    source, snps, config.call_threshold, as_int=config.genotypes_as_int
                )

    kept, _ = select_available_treatments(requested, [*snps, *extra_names])
    if not kept:
        raise ConfigurationError("None of the treatments of the parameter files could be found")

    dataset, variables = _assemble(config, inputs, genotypes, kept)
    files = _files_from_documents(
        templates, kept, variables, dataset, config.positivity_constraint
    )
    return _write(config, dataset, variables, files)


def tmle_inputs_with_asb_trans(
    config: RunConfig,
    genotype_source: GenotypeSource | None = None,
) -> RunResult:
    """Trans-actors are crossed with ASB SNPs, or placeholder templates are filled."""
    options: AsbTransOptions = config.options
    inputs = read_inputs(config)

    asb = asb_snps(options.asb_prefix)
    transactors = trans_actors(options.trans_actors)
    snps = unique_in_order([*transactors, *asb])

    with _genotype_source(config, genotype_source) as source:
        genotypes = call_variants(
            source, snps, config.call_threshold, as_int=config.genotypes_as_int
        )

    extra_names = inputs.extra_treatment_names
    dataset, variables = _assemble(config, inputs, genotypes, [*snps, *extra_names])

    if options.param_prefix is not None:
        documents = list(
            asb_trans_documents(read_parameter_templates(options.param_prefix), asb, transactors)
        )
        requested = unique_in_order(t for _, doc in documents for t in template_treatments(doc))
        kept, _ = select_available_treatments(requested, variables.treatments)
        files = _files_from_documents(
            documents, kept, variables, dataset, config.positivity_constraint
        )
    else:
        parameters = parameters_from_asb_trans(
            asb,
            transactors,
            dataset.treatments,
            variables,
            positivity_constraint=config.positivity_constraint,
        )
        files = group_parameters(parameters)

    return _write(config, dataset, variables, files)


def tmle_inputs_from_actors(
    config: RunConfig,
    genotype_source: GenotypeSource | None = None,
) -> RunResult:
    """bQTLs are combined with trans-actors and extra treatments at each order."""
    options: FromActorsOptions = config.options
    inputs = read_inputs(config)

    bqtls, transactors, extra = treatments_from_actors(
        options.bqtls, config.extra_treatments, options.trans_actors_prefix
    )
    variants = all_variants(bqtls, transactors)

    genotypes = None
    if variants:
        with _genotype_source(config, genotype_source) as source:
            genotypes = call_variants(
                source, variants, config.call_threshold, as_int=config.genotypes_as_int
            )

    dataset, variables = _assemble(config, inputs, genotypes, [*variants, *extra.ids])
    parameters = parameters_from_actors(
        bqtls,
        transactors,
        extra,
        dataset.treatments,
        variables,
        options.orders,
        positivity_constraint=config.positivity_constraint,
    )
    return _write(config, dataset, variables, group_parameters(parameters))


def _write(
    config: RunConfig,
    dataset: TMLEDataset,
    variables: Variables,
    files: list[ParameterFile],
) -> RunResult:
    summary = write_tmle_inputs(
        config.out_prefix, dataset, files, variables, batch_size=config.phenotype_batch_size
    )
    return RunResult(dataset=dataset, variables=variables, parameter_files=files, summary=summary)


RUNNERS = {
    Mode.WITH_PARAM_FILES: tmle_inputs_from_param_files,
    Mode.WITH_ASB_TRANS: tmle_inputs_with_asb_trans,
    Mode.FROM_ACTORS: tmle_inputs_from_actors,
}


def tmle_inputs(config: RunConfig, genotype_source: GenotypeSource | None = None) -> RunResult:
    """Run the mode selected in the configuration.

    Args:
        config: Run configuration
        genotype_source: Genotype source to use instead of the BGEN files
            matching ``config.bgen_prefix``

    Returns:
        RunResult with the assembled dataset and written files
    """
    logger.info("Preparing TMLE inputs (%s) to %s", config.mode.value, config.out_prefix)
    return RUNNERS[config.mode](config, genotype_source)
