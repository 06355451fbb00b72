"""Data models for genotype variants and causal parameters."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SAMPLE_ID = "SAMPLE_ID"


@dataclass(frozen=True)
class Variant:
    """A bi-allelic variant as read from the genotype source."""

    rsid: str
    chromosome: str
    alleles: tuple[str, str]
    minor_allele: str

    @property
    def minor_allele_first(self) -> bool:
        return self.minor_allele == self.alleles[0]


class ParameterType(str, Enum):
    """Causal parameter family."""

    ATE = "ATE"
    IATE = "IATE"

    @classmethod
    def from_string(cls, value: str) -> "ParameterType":
        try:
            return cls(value.upper())
        except ValueError:
            raise ValueError(
                f"Unknown parameter type: '{value}'. Expected one of ATE, IATE"
            ) from None


@dataclass(frozen=True)
class CaseControl:
    """Case and control values for one treatment variable."""

    case: Any
    control: Any

    @property
    def varies(self) -> bool:
        return self.case != self.control

    def to_dict(self) -> dict[str, Any]:
        return {"case": to_native(self.case), "control": to_native(self.control)}


@dataclass(frozen=True)
class TreatmentCombination:
    """Treatment variables studied jointly.

    The primary treatment (the bQTL) is the one whose effect is estimated by
    ATE parameters; the others are held fixed.
    """

    primary: str
    others: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return (self.primary, *self.others)

    @property
    def order(self) -> int:
        return 1 + len(self.others)


@dataclass(frozen=True)
class CausalParameter:
    """An ATE or IATE parameter over an ordered treatment setting.

    ``entry`` is the template entry the parameter was read from, written back
    as is.
    """

    type: ParameterType
    primary_treatment: str
    setting: tuple[tuple[str, CaseControl], ...]
    confounders: tuple[str, ...] = ()
    covariates: tuple[str, ...] = ()
    entry: Mapping[str, Any] | None = field(default=None, compare=False, hash=False)

    @property
    def treatments(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.setting)

    @property
    def template_key(self) -> tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]]:
        """Identity of the (treatments, confounders, covariates) template."""
        return (self.treatments, self.confounders, self.covariates)

    @property
    def name(self) -> str:
        if self.entry is not None and "name" in self.entry:
            return str(self.entry["name"])
        parts = [
            f"{treatment}_{to_native(cc.case)}_{to_native(cc.control)}"
            for treatment, cc in self.setting
        ]
        return "_".join([self.type.value, *parts])

    def to_dict(self) -> dict[str, Any]:
        if self.entry is not None:
            return dict(self.entry)
        entry: dict[str, Any] = {"name": self.name, "type": self.type.value}
        for treatment, cc in self.setting:
            entry[treatment] = cc.to_dict()
        return entry


@dataclass
class ParameterFile:
    """One parameter file: a treatment template and its parameters.

    ``phenotypes`` is None until the template is instantiated for an outcome
    batch. ``document`` is the template the file was parsed from; its sections
    are written back unchanged apart from Phenotypes and Parameters.
    """

    treatments: tuple[str, ...]
    parameters: list[CausalParameter] = field(default_factory=list)
    confounders: tuple[str, ...] = ()
    covariates: tuple[str, ...] = ()
    phenotypes: tuple[str, ...] | None = None
    document: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        if self.document is not None:
            data = {k: v for k, v in self.document.items() if k != "Parameters"}
        else:
            data = {
                "Treatments": list(self.treatments),
                "Confounders": list(self.confounders),
                "Covariates": list(self.covariates),
            }
        if self.phenotypes is not None:
            data["Phenotypes"] = list(self.phenotypes)
        data["Parameters"] = [p.to_dict() for p in self.parameters]
        return data

    def dedup_key(self) -> tuple:
        settings = tuple(
            (p.type, tuple((t, *cc.to_dict().values()) for t, cc in p.setting))
            for p in self.parameters
        )
        return (
            self.treatments,
            settings,
            self.confounders,
            self.covariates,
            self.phenotypes,
        )


def to_native(value: Any) -> Any:
    """Convert numpy/pandas scalars to plain Python values."""
    if hasattr(value, "item"):
        return value.item()
    return value
