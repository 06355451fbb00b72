"""Tests for run configuration loading and validation."""

import logging
from pathlib import Path

import pytest


def _base_overrides(**extra):
    overrides = {
        "bgen_prefix": "data/ukbb",
        "genetic_confounders": "data/pcs.csv",
        "binary_phenotypes": "data/binary.csv",
    }
    overrides.update(extra)
    return overrides


class TestLoadConfig:
    """Test RunConfig construction from overrides and files."""

    def test_defaults(self):
        from tmle_inputs.config import Mode, load_config

        config = load_config(Mode.WITH_PARAM_FILES, overrides=_base_overrides(param_prefix="p_"))

        assert config.call_threshold == 0.9
        assert config.out_prefix == "final"
        assert config.positivity_constraint == 0.0
        assert config.phenotype_batch_size is None
        assert config.genotypes_as_int is True
        assert config.genetic_confounders == Path("data/pcs.csv")
        assert config.options.param_prefix == "p_"

    def test_from_actors_options(self):
        from tmle_inputs.config import FromActorsOptions, Mode, load_config

        config = load_config(
            Mode.FROM_ACTORS,
            overrides=_base_overrides(
                bqtls="bqtls.csv", trans_actors_prefix="trans_", orders="1,2,3"
            ),
        )

        assert isinstance(config.options, FromActorsOptions)
        assert config.options.bqtls == Path("bqtls.csv")
        assert config.options.orders == (1, 2, 3)

    def test_asb_trans_requires_options(self):
        from tmle_inputs.config import ConfigurationError, Mode, load_config

        with pytest.raises(ConfigurationError, match="with-asb-trans"):
            load_config(Mode.WITH_ASB_TRANS, overrides=_base_overrides(asb_prefix="asb_"))

    def test_required_fields(self):
        from tmle_inputs.config import ConfigurationError, Mode, load_config

        overrides = _base_overrides(param_prefix="p_")
        del overrides["genetic_confounders"]

        with pytest.raises(ConfigurationError, match="genetic_confounders"):
            load_config(Mode.WITH_PARAM_FILES, overrides=overrides)

    def test_phenotypes_required(self):
        from tmle_inputs.config import ConfigurationError, Mode, load_config

        overrides = _base_overrides(param_prefix="p_")
        del overrides["binary_phenotypes"]

        with pytest.raises(ConfigurationError, match="phenotypes"):
            load_config(Mode.WITH_PARAM_FILES, overrides=overrides)

    def test_invalid_values(self):
        from tmle_inputs.config import ConfigValidationError, Mode, load_config

        with pytest.raises(ConfigValidationError, match="call_threshold"):
            load_config(
                Mode.WITH_PARAM_FILES,
                overrides=_base_overrides(param_prefix="p_", call_threshold=1.5),
            )

    def test_toml_file_and_overrides(self, tmp_path):
        from tmle_inputs.config import Mode, load_config

        config_path = tmp_path / "tmle.toml"
        config_path.write_text(
            "[tmle_inputs]\n"
            'bgen_prefix = "data/ukbb"\n'
            'genetic_confounders = "data/pcs.csv"\n'
            'continuous_phenotypes = "data/continuous.csv"\n'
            'param_prefix = "params/param_"\n'
            "call_threshold = 0.8\n"
            "phenotype_batch_size = 5\n"
        )

        config = load_config(
            Mode.WITH_PARAM_FILES,
            config_path,
            overrides={"call_threshold": 0.95, "out_prefix": None},
        )

        assert config.call_threshold == 0.95
        assert config.phenotype_batch_size == 5
        assert config.out_prefix == "final"
        assert config.continuous_phenotypes == Path("data/continuous.csv")

    def test_unknown_keys_warned(self, caplog):
        from tmle_inputs.config import Mode, load_config

        with caplog.at_level(logging.WARNING):
            load_config(
                Mode.WITH_PARAM_FILES,
                overrides=_base_overrides(param_prefix="p_", workers=8),
            )

        assert "workers" in caplog.text


class TestReadConfigFile:
    """Test TOML file reading."""

    def test_missing_file(self, tmp_path):
        from tmle_inputs.config import read_config_file

        with pytest.raises(FileNotFoundError):
            read_config_file(tmp_path / "missing.toml")

    def test_missing_table(self, tmp_path):
        from tmle_inputs.config import read_config_file

        path = tmp_path / "empty.toml"
        path.write_text("[other]\nkey = 1\n")

        assert read_config_file(path) == {}

    def test_invalid_log_level(self, tmp_path):
        from tmle_inputs.config import ConfigValidationError, read_config_file

        path = tmp_path / "bad.toml"
        path.write_text('[tmle_inputs]\nlog_level = "LOUD"\n')

        with pytest.raises(ConfigValidationError, match="log_level"):
            read_config_file(path)

    def test_invalid_orders(self, tmp_path):
        from tmle_inputs.config import ConfigValidationError, read_config_file

        path = tmp_path / "bad.toml"
        path.write_text('[tmle_inputs]\norders = "1;2"\n')

        with pytest.raises(ConfigValidationError, match="orders"):
            read_config_file(path)


class TestRunConfig:
    """Test direct RunConfig construction."""

    def test_mismatched_options(self):
        from tmle_inputs.config import ConfigurationError, Mode, ParamFilesOptions, RunConfig

        with pytest.raises(ConfigurationError, match="FromActorsOptions"):
            RunConfig(
                mode=Mode.FROM_ACTORS,
                options=ParamFilesOptions(param_prefix="p_"),
                bgen_prefix="ukbb",
                genetic_confounders=Path("pcs.csv"),
                binary_phenotypes=Path("binary.csv"),
            )
