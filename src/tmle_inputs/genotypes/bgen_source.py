"""BGEN backed genotype source.

A prefix such as ``data/ukbb/imputed/ukbb`` resolves to every file matching
``ukbb[0-9]*.bgen`` in ``data/ukbb/imputed`` (one file per chromosome is the
usual layout). The reader uses the ``.bgi`` index next to each file, and an
optional ``.sample`` sibling provides the sample identifiers.
"""

import logging
import re
from contextlib import ExitStack
from pathlib import Path

import numpy as np
from bgen_reader import open_bgen

from ..models import Variant
from .decoder import VariantNotFoundError, minor_allele_index

logger = logging.getLogger(__name__)


def bgen_files_from_prefix(prefix: str | Path) -> list[Path]:
    """List the BGEN files sharing a prefix, in lexicographic order."""
    prefix = Path(prefix)
    directory = prefix.parent
    pattern = re.compile(rf"^{re.escape(prefix.name)}[0-9]*\.bgen$")
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if pattern.match(p.name))


class BgenGenotypeSource:
    """Genotype source over one or more BGEN files sharing their samples."""

    def __init__(self, paths: list[Path]):
        if not paths:
            raise FileNotFoundError("No BGEN file to read genotypes from")

        self.paths = paths
        self._stack = ExitStack()
        self._files = []
        self._index: dict[str, tuple[int, int]] = {}
        self._samples: list[str] | None = None

        try:
            for file_number, path in enumerate(paths):
                sample_path = path.with_suffix(".sample")
                bgen = self._stack.enter_context(
                    open_bgen(
                        path,
                        samples_filepath=sample_path if sample_path.exists() else None,
                        verbose=False,
                    )
                )
                self._register(file_number, path, bgen)
        except Exception:
            self._stack.close()
            raise

    @classmethod
    def from_prefix(cls, prefix: str | Path) -> "BgenGenotypeSource":
        paths = bgen_files_from_prefix(prefix)
        if not paths:
            raise FileNotFoundError(f"No BGEN file matching prefix: {prefix}")
        logger.info("Reading genotypes from %d BGEN file(s) with prefix %s", len(paths), prefix)
        return cls(paths)

    def _register(self, file_number: int, path: Path, bgen) -> None:
        samples = [str(s) for s in bgen.samples]
        if self._samples is None:
            self._samples = samples
        elif samples != self._samples:
            raise ValueError(f"Samples of {path} differ from those of {self.paths[0]}")

        self._files.append(bgen)
        for variant_index, rsid in enumerate(bgen.rsids):
            self._index.setdefault(str(rsid), (file_number, variant_index))

    @property
    def samples(self) -> list[str]:
        return list(self._samples or [])

    def has_variant(self, rsid: str) -> bool:
        return rsid in self._index

    def read_variant(self, rsid: str) -> tuple[Variant, np.ndarray]:
        if rsid not in self._index:
            raise VariantNotFoundError(f"Variant not found in genotype source: {rsid}")

        file_number, variant_index = self._index[rsid]
        bgen = self._files[file_number]

        alleles = tuple(str(bgen.allele_ids[variant_index]).split(","))
        if len(alleles) != 2:
            raise ValueError(
                f"Only bi-allelic variants can be called, {rsid} has alleles {alleles}"
            )

        probabilities = bgen.read(variant_index, max_combinations=3)[:, 0, :]
        if probabilities.shape[1] != 3:
            raise ValueError(f"Expected diploid genotype probabilities for {rsid}")

        variant = Variant(
            rsid=rsid,
            chromosome=str(bgen.chromosomes[variant_index]),
            alleles=alleles,
            minor_allele=alleles[minor_allele_index(probabilities)],
        )
        return variant, probabilities

    def close(self) -> None:
        self._stack.close()

    def __enter__(self) -> "BgenGenotypeSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
