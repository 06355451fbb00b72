"""Instantiation of parameter files for each outcome batch."""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import replace

from ..dataset.assembler import BINARY, CONTINUOUS, Variables
from ..models import ParameterFile

logger = logging.getLogger(__name__)

OUTCOME_TYPES = (BINARY, CONTINUOUS)


def phenotype_batches(
    targets: Sequence[str], batch_size: int | None = None
) -> list[tuple[str, ...]]:
    """Split outcomes into chunks of at most ``batch_size``.

    Without a batch size there is a single batch holding every outcome.
    """
    targets = tuple(targets)
    if not targets:
        return []
    if batch_size is None:
        return [targets]
    return [targets[i : i + batch_size] for i in range(0, len(targets), batch_size)]


def expand_outcomes(
    files: Sequence[ParameterFile],
    targets: Sequence[str],
    batch_size: int | None = None,
) -> Iterator[ParameterFile]:
    """Instantiate each template once per outcome batch, skipping duplicates.

    A template already restricted to some phenotypes only uses the outcomes it
    lists. Without a batch size, templates with at least one outcome are kept
    unchanged.
    """
    seen: set[tuple] = set()
    n_duplicates = 0
    for template in files:
        template_targets = targets
        if template.phenotypes is not None:
            template_targets = [t for t in targets if t in template.phenotypes]

        if batch_size is None:
            instances = [template] if template_targets else []
        else:
            instances = [
                replace(template, phenotypes=batch)
                for batch in phenotype_batches(template_targets, batch_size)
            ]

        for parameter_file in instances:
            key = parameter_file.dedup_key()
            if key in seen:
                n_duplicates += 1
                continue
            seen.add(key)
            yield parameter_file

    if n_duplicates:
        logger.info("Skipped %d duplicated parameter files", n_duplicates)


def outcome_parameter_files(
    files: Sequence[ParameterFile],
    variables: Variables,
    batch_size: int | None = None,
) -> Iterator[tuple[str, ParameterFile]]:
    """Parameter files of every outcome type; each type is deduplicated on its own."""
    for outcome_type in OUTCOME_TYPES:
        for parameter_file in expand_outcomes(files, variables.targets(outcome_type), batch_size):
            yield outcome_type, parameter_file
