"""Parameter template files.

A template is a YAML document::

    Treatments: [RSID_2, RSID_198]
    Confounders: [PC1, PC2]      # optional, defaults to every confounder
    Covariates: [COV_1]          # optional, defaults to every covariate
    Phenotypes: [BINARY_1]       # optional, defaults to every phenotype
    Parameters:
      - name: IATE_0_1           # optional
        type: IATE               # optional, inferred from the case/control values
        RSID_2: {case: 1, control: 0}
        RSID_198: {case: 1, control: 0}

Sections and parameter entries are written back as read. Templates for
ASB/trans-actor runs may use the ``ASB_SNP`` and ``TRANS_ACTOR`` placeholders in
place of treatment names.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from ..config import ConfigurationError
from ..dataset.assembler import Variables
from ..models import CaseControl, CausalParameter, ParameterFile, ParameterType
from .positivity import frequency_table, satisfies_positivity

logger = logging.getLogger(__name__)

ASB_PLACEHOLDER = "ASB_SNP"
TRANS_PLACEHOLDER = "TRANS_ACTOR"
TEMPLATE_SUFFIXES = {".yaml", ".yml"}
RESERVED_KEYS = {"name", "type"}


class TemplateError(ConfigurationError):
    """Raised when a parameter template is malformed."""

    pass


def read_parameter_templates(prefix: str | Path) -> list[tuple[Path, dict[str, Any]]]:
    """Load every YAML file whose name starts with the prefix, in sorted order."""
    prefix = Path(prefix)
    directory = prefix.parent
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found for prefix: {prefix}")

    templates = []
    for path in sorted(directory.iterdir()):
        if path.name.startswith(prefix.name) and path.suffix in TEMPLATE_SUFFIXES:
            with open(path, encoding="utf-8") as f:
                document = yaml.safe_load(f)
            if not isinstance(document, dict) or "Treatments" not in document:
                raise TemplateError(f"{path} is not a parameter file: no Treatments section")
            templates.append((path, document))

    if not templates:
        raise FileNotFoundError(f"No parameter file matching prefix: {prefix}")
    logger.info("Read %d parameter template(s) with prefix %s", len(templates), prefix)
    return templates


def template_treatments(document: Mapping[str, Any]) -> list[str]:
    return [str(t) for t in document.get("Treatments") or []]


def substitute_placeholders(
    document: Mapping[str, Any], mapping: Mapping[str, str]
) -> dict[str, Any]:
    """Copy of a template with placeholder treatment names replaced."""

    def rename(name: Any) -> Any:
        return mapping.get(name, name)

    substituted = dict(document)
    substituted["Treatments"] = [rename(t) for t in template_treatments(document)]
    substituted["Parameters"] = [
        {rename(key): value for key, value in entry.items()}
        for entry in document.get("Parameters") or []
    ]
    return substituted


def asb_trans_documents(
    templates: Sequence[tuple[Path, dict[str, Any]]],
    asb: Sequence[str],
    transactors: Sequence[str],
) -> Iterator[tuple[Path, dict[str, Any]]]:
    """Instantiate each template for every (ASB SNP, trans-actor) pair."""
    for path, document in templates:
        placeholders = {ASB_PLACEHOLDER, TRANS_PLACEHOLDER}
        uses_placeholders = placeholders & set(template_treatments(document))
        if not uses_placeholders:
            yield path, document
            continue
        for transactor in transactors:
            for snp in asb:
                if snp == transactor:
                    continue
                yield path, substitute_placeholders(
                    document, {ASB_PLACEHOLDER: snp, TRANS_PLACEHOLDER: transactor}
                )


def _case_control(value: Any, treatment: str, source: Path) -> CaseControl:
    if not isinstance(value, Mapping) or not {"case", "control"} <= set(value):
        raise TemplateError(f"{source}: {treatment} should define case and control values")
    return CaseControl(case=value["case"], control=value["control"])


def _infer_type(setting: tuple[tuple[str, CaseControl], ...], source: Path) -> ParameterType:
    varying = [name for name, cc in setting if cc.varies]
    if len(varying) == 1:
        return ParameterType.ATE
    if len(varying) == len(setting) and len(setting) >= 2:
        return ParameterType.IATE
    raise TemplateError(
        f"{source}: cannot infer the parameter type of {[name for name, _ in setting]}, "
        "an ATE varies one treatment and an IATE varies all of them"
    )


def parse_template(
    document: Mapping[str, Any],
    source: Path,
    variables: Variables,
) -> ParameterFile:
    """Build a ParameterFile from a template document.

    Raises:
        TemplateError: If a parameter does not match the Treatments section
    """
    treatments = tuple(template_treatments(document))
    if not treatments:
        raise TemplateError(f"{source}: empty Treatments section")

    confounders = tuple(document.get("Confounders") or variables.confounders)
    covariates = tuple(document.get("Covariates") or variables.covariates)
    phenotypes = document.get("Phenotypes")

    parameter_file = ParameterFile(
        treatments=treatments,
        confounders=confounders,
        covariates=covariates,
        phenotypes=tuple(phenotypes) if phenotypes else None,
        document=dict(document),
    )
    for entry in document.get("Parameters") or []:
        names = set(entry) - RESERVED_KEYS
        if names != set(treatments):
            raise TemplateError(
                f"{source}: parameter {entry.get('name', '')} treatments {sorted(names)} "
                f"do not match {list(treatments)}"
            )
        setting = tuple((t, _case_control(entry[t], t, source)) for t in treatments)
        if "type" in entry:
            try:
                parameter_type = ParameterType.from_string(str(entry["type"]))
            except ValueError as e:
                raise TemplateError(f"{source}: {e}") from None
        else:
            parameter_type = _infer_type(setting, source)

        primary = treatments[0]
        if parameter_type is ParameterType.ATE:
            primary = next((name for name, cc in setting if cc.varies), primary)

        parameter_file.parameters.append(
            CausalParameter(
                type=parameter_type,
                primary_treatment=primary,
                setting=setting,
                confounders=confounders,
                covariates=covariates,
                entry=dict(entry),
            )
        )
    return parameter_file


def filter_by_positivity(
    files: Sequence[ParameterFile],
    data: pd.DataFrame,
    positivity_constraint: float = 0.0,
) -> list[ParameterFile]:
    """Drop parameters failing positivity, then files left without parameters."""
    kept: list[ParameterFile] = []
    for parameter_file in files:
        freqs = frequency_table(data, parameter_file.treatments)
        parameters = [
            p
            for p in parameter_file.parameters
            if satisfies_positivity(p, freqs, positivity_constraint)
        ]
        n_dropped = len(parameter_file.parameters) - len(parameters)
        if n_dropped:
            logger.debug(
                "%d parameters of %s failed the positivity constraint",
                n_dropped,
                list(parameter_file.treatments),
            )
        if parameters:
            kept.append(replace(parameter_file, parameters=parameters))
    return kept
