"""Readers for SNP and actor lists.

Actor sources are optional and come in three shapes: absent, a single list
(bQTLs, extra treatments) or several lists (one per trans-actor file). Each
list is a "unit" from which one treatment is drawn when forming treatment
combinations.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import pandas as pd

from ..config import ConfigurationError
from ..models import SAMPLE_ID

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    """Shape of an optional actor source."""

    ABSENT = "absent"
    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass(frozen=True)
class SnpTable:
    """An ordered list of unique SNP (or variable) identifiers."""

    name: str
    ids: tuple[str, ...]
    chromosomes: tuple[str, ...] | None = None

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True)
class ActorSource:
    """An optional source of treatments made of zero, one or several units."""

    kind: SourceKind
    tables: tuple[SnpTable, ...] = ()

    @classmethod
    def absent(cls) -> "ActorSource":
        return cls(SourceKind.ABSENT)

    @classmethod
    def single(cls, table: SnpTable) -> "ActorSource":
        return cls(SourceKind.SINGLE, (table,))

    @classmethod
    def multiple(cls, tables: list[SnpTable]) -> "ActorSource":
        if not tables:
            return cls.absent()
        return cls(SourceKind.MULTIPLE, tuple(tables))

    @property
    def is_absent(self) -> bool:
        return self.kind is SourceKind.ABSENT

    @property
    def ids(self) -> list[str]:
        return unique_in_order(id_ for table in self.tables for id_ in table.ids)


def unique_in_order(values) -> list[str]:
    return list(dict.fromkeys(values))


def _files_with_prefix(prefix: str | Path) -> list[Path]:
    """Files of the prefix directory whose name starts with the prefix basename."""
    prefix = Path(prefix)
    directory = prefix.parent
    if not directory.is_dir():
        raise FileNotFoundError(f"Directory not found for prefix: {prefix}")
    return sorted(
        p for p in directory.iterdir() if p.is_file() and p.name.startswith(prefix.name)
    )


def read_txt_file(path: str | Path | None) -> list[str] | None:
    """Read a single-column list without header, one entry per line."""
    if path is None:
        return None

    with open(path, encoding="utf-8") as f:
        return unique_in_order(line.strip() for line in f if line.strip())


def _read_id_column(path: Path) -> list[str]:
    """SNP IDs of a plain list, or of the ID (else first) column of a CSV."""
    with open(path, encoding="utf-8") as f:
        first_line = f.readline()

    if "," not in first_line:
        ids = read_txt_file(path) or []
        return ids[1:] if ids and ids[0] == "ID" else ids

    table = pd.read_csv(path, dtype=str)
    column = "ID" if "ID" in table.columns else table.columns[0]
    return unique_in_order(table[column].dropna().str.strip())


def asb_snps(prefix: str | Path) -> list[str]:
    """Allele-specific-binding SNPs from every file starting with the prefix.

    Args:
        prefix: Path prefix, e.g. ``data/asb_files/asb_``

    Returns:
        SNP identifiers, deduplicated, in file then row order
    """
    snps: list[str] = []
    for path in _files_with_prefix(prefix):
        snps.extend(_read_id_column(path))
    snps = unique_in_order(snps)
    logger.info("Read %d ASB SNPs from prefix %s", len(snps), prefix)
    return snps


def trans_actors(path: str | Path) -> list[str]:
    """Unique trans-actor IDs from a CSV with an ``ID`` column, in file order."""
    table = pd.read_csv(path, dtype=str)
    if "ID" not in table.columns:
        raise ConfigurationError(f"Trans-actors file {path} has no ID column")
    return unique_in_order(table["ID"].dropna().str.strip())


def read_snps_from_csv(path: str | Path | None) -> SnpTable | None:
    """Read a SNP table with ``ID`` and ``CHR`` columns, deduplicated on ID."""
    if path is None:
        return None

    table = pd.read_csv(path, dtype=str)
    missing = {"ID", "CHR"} - set(table.columns)
    if missing:
        raise ConfigurationError(
            f"SNP file {path} is missing columns: {', '.join(sorted(missing))}"
        )

    table = table.dropna(subset=["ID"]).drop_duplicates(subset="ID", keep="first")
    return SnpTable(
        name=Path(path).name,
        ids=tuple(table["ID"]),
        chromosomes=tuple(table["CHR"]),
    )


def trans_actors_from_prefix(prefix: str | Path | None) -> list[SnpTable] | None:
    """One SNP table per file starting with the prefix, not merged."""
    if prefix is None:
        return None
    return [read_snps_from_csv(path) for path in _files_with_prefix(prefix)]


def read_variable_names(path: str | Path | None) -> list[str] | None:
    """Variable names of a SAMPLE_ID keyed table (its header minus SAMPLE_ID)."""
    if path is None:
        return None

    header = pd.read_csv(path, nrows=0).columns
    return [str(c) for c in header if c != SAMPLE_ID]


def treatments_from_actors(
    bqtl_file: str | Path | None,
    env_file: str | Path | None,
    trans_actors_prefix: str | Path | None,
) -> tuple[ActorSource, ActorSource, ActorSource]:
    """Resolve the bQTL, trans-actor and extra treatment sources.

    Args:
        bqtl_file: CSV of bQTLs (ID, CHR)
        env_file: SAMPLE_ID keyed table of extra (environmental) treatments
        trans_actors_prefix: Prefix of the trans-actor CSV files

    Returns:
        Tuple of (bqtls, trans_actors, extra_treatments) sources

    Raises:
        ConfigurationError: If fewer than two sources are given
    """
    given = [x for x in (bqtl_file, env_file, trans_actors_prefix) if x is not None]
    if len(given) < 2:
        raise ConfigurationError(
            "At least two of (bqtls, env, trans-actors) should be specified"
        )

    bqtl_table = read_snps_from_csv(bqtl_file)
    bqtls = ActorSource.single(bqtl_table) if bqtl_table else ActorSource.absent()

    trans_tables = trans_actors_from_prefix(trans_actors_prefix)
    transactors = ActorSource.multiple(trans_tables) if trans_tables else ActorSource.absent()

    extra_names = read_variable_names(env_file)
    extra = (
        ActorSource.single(SnpTable(name=Path(env_file).name, ids=tuple(extra_names)))
        if extra_names
        else ActorSource.absent()
    )

    logger.info(
        "Actors: %d bQTLs, %d trans-actor file(s), %d extra treatments",
        len(bqtls.ids),
        len(transactors.tables),
        len(extra.ids),
    )
    return bqtls, transactors, extra


def all_variants(bqtls: ActorSource, transactors: ActorSource) -> list[str]:
    """SNPs to read from the genotype source, bQTLs first."""
    return unique_in_order([*bqtls.ids, *transactors.ids])
