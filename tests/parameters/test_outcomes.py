"""Tests for outcome batches and duplicate removal."""

import pytest


def _parameter_file(treatments=("RSID_1",), phenotypes=None, case=1):
    from tmle_inputs.models import CaseControl, CausalParameter, ParameterFile, ParameterType

    parameter = CausalParameter(
        type=ParameterType.ATE,
        primary_treatment=treatments[0],
        setting=tuple(
            (t, CaseControl(case=case if i == 0 else 0, control=0))
            for i, t in enumerate(treatments)
        ),
    )
    return ParameterFile(
        treatments=tuple(treatments), parameters=[parameter], phenotypes=phenotypes
    )


class TestPhenotypeBatches:
    """Test phenotype batching."""

    def test_single_batch_without_size(self):
        from tmle_inputs.parameters.outcomes import phenotype_batches

        assert phenotype_batches(["A", "B", "C"]) == [("A", "B", "C")]

    @pytest.mark.parametrize(
        "batch_size, expected",
        [
            (1, [("A",), ("B",), ("C",)]),
            (2, [("A", "B"), ("C",)]),
            (3, [("A", "B", "C")]),
            (10, [("A", "B", "C")]),
        ],
    )
    def test_batch_sizes(self, batch_size, expected):
        from tmle_inputs.parameters.outcomes import phenotype_batches

        assert phenotype_batches(["A", "B", "C"], batch_size) == expected

    def test_no_targets(self):
        from tmle_inputs.parameters.outcomes import phenotype_batches

        assert phenotype_batches([], 2) == []


class TestExpandOutcomes:
    """Test instantiation of templates per outcome batch."""

    def test_one_file_per_batch(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        files = list(expand_outcomes([_parameter_file()], ["A", "B", "C"], 2))

        assert [f.phenotypes for f in files] == [("A", "B"), ("C",)]

    def test_template_not_modified(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        template = _parameter_file()
        list(expand_outcomes([template], ["A"], None))

        assert template.phenotypes is None

    def test_duplicates_removed(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        files = list(expand_outcomes([_parameter_file(), _parameter_file()], ["A", "B"], 1))

        assert len(files) == 2

    def test_different_parameters_kept(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        files = list(
            expand_outcomes([_parameter_file(case=1), _parameter_file(case=2)], ["A"], None)
        )

        assert len(files) == 2

    def test_template_phenotypes_restrict_targets(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        template = _parameter_file(phenotypes=("C", "A"))

        files = list(expand_outcomes([template], ["A", "B", "C"], 2))

        assert [f.phenotypes for f in files] == [("A", "C")]

    def test_without_batch_size_template_unchanged(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        template = _parameter_file()

        (parameter_file,) = expand_outcomes([template], ["A", "B", "C"], None)

        assert parameter_file is template
        assert "Phenotypes" not in parameter_file.to_dict()

    def test_without_batch_size_template_of_other_outcomes_skipped(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        template = _parameter_file(phenotypes=("BINARY_1",))

        assert list(expand_outcomes([template], ["CONTINUOUS_1"], None)) == []

    def test_no_targets_no_files(self):
        from tmle_inputs.parameters.outcomes import expand_outcomes

        assert list(expand_outcomes([_parameter_file()], [], None)) == []


class TestOutcomeParameterFiles:
    """Test expansion over both outcome types."""

    def test_binary_then_continuous(self):
        from tmle_inputs.dataset.assembler import Variables
        from tmle_inputs.parameters.outcomes import outcome_parameter_files

        variables = Variables(
            confounders=("PC1",),
            covariates=(),
            treatments=("RSID_1",),
            binary_targets=("B1", "B2"),
            continuous_targets=("C1",),
        )

        expanded = list(outcome_parameter_files([_parameter_file()], variables, 1))

        assert [(t, f.phenotypes) for t, f in expanded] == [
            ("binary", ("B1",)),
            ("binary", ("B2",)),
            ("continuous", ("C1",)),
        ]

    def test_deduplication_per_outcome_type(self):
        from tmle_inputs.dataset.assembler import Variables
        from tmle_inputs.parameters.outcomes import outcome_parameter_files

        variables = Variables(
            confounders=(),
            covariates=(),
            treatments=("RSID_1",),
            binary_targets=("X",),
            continuous_targets=("X",),
        )

        expanded = list(outcome_parameter_files([_parameter_file()], variables))

        assert [t for t, _ in expanded] == ["binary", "continuous"]
