"""Pytest configuration and fixtures for tmle-inputs tests."""

import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

# Render CLI help wide enough that rich does not truncate long option names.
os.environ.setdefault("COLUMNS", "200")

from fixtures.tmle_data_generator import (  # noqa: E402
    InMemoryGenotypeSource,
    TMLEInputFiles,
    default_variants,
    make_tmle_input_files,
    sample_ids,
)


@pytest.fixture
def samples() -> list[str]:
    return sample_ids(10)


@pytest.fixture
def genotype_source(samples) -> InMemoryGenotypeSource:
    """In-memory source with RSID_1, RSID_2 and RSID_3."""
    return InMemoryGenotypeSource.from_variants(samples, default_variants(len(samples)))


@pytest.fixture
def input_files(tmp_path) -> TMLEInputFiles:
    """Synthetic input tables for 10 samples."""
    return make_tmle_input_files(tmp_path)
