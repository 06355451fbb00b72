"""Tests for SNP and actor list readers."""

import pytest


def _write(path, text):
    path.write_text(text)
    return path


class TestReadTxtFile:
    """Test single-column lists."""

    def test_none(self):
        from tmle_inputs.actors.catalog import read_txt_file

        assert read_txt_file(None) is None

    def test_blank_lines_and_duplicates(self, tmp_path):
        from tmle_inputs.actors.catalog import read_txt_file

        path = _write(tmp_path / "snps.txt", "RSID_1\n\nRSID_2\nRSID_1\n")

        assert read_txt_file(path) == ["RSID_1", "RSID_2"]


class TestAsbSnps:
    """Test ASB SNPs read from a file prefix."""

    def test_files_read_in_sorted_order(self, tmp_path):
        from tmle_inputs.actors.catalog import asb_snps

        _write(tmp_path / "asb_2.csv", "ID,CHR\nRSID_3,2\nRSID_1,1\n")
        _write(tmp_path / "asb_1.csv", "ID,CHR\nRSID_1,1\nRSID_2,1\n")
        _write(tmp_path / "other.csv", "ID,CHR\nRSID_9,1\n")

        assert asb_snps(tmp_path / "asb_") == ["RSID_1", "RSID_2", "RSID_3"]

    def test_plain_lists(self, tmp_path):
        from tmle_inputs.actors.catalog import asb_snps

        _write(tmp_path / "asb_1.txt", "ID\nRSID_1\nRSID_2\n")
        _write(tmp_path / "asb_2.txt", "RSID_5\n")

        assert asb_snps(tmp_path / "asb_") == ["RSID_1", "RSID_2", "RSID_5"]

    def test_first_column_without_id(self, tmp_path):
        from tmle_inputs.actors.catalog import asb_snps

        _write(tmp_path / "asb_1.csv", "SNP,CHR\nRSID_7,1\n")

        assert asb_snps(tmp_path / "asb_") == ["RSID_7"]

    def test_missing_directory(self, tmp_path):
        from tmle_inputs.actors.catalog import asb_snps

        with pytest.raises(FileNotFoundError):
            asb_snps(tmp_path / "missing" / "asb_")


class TestTransActors:
    """Test the trans-actors CSV."""

    def test_unique_ids_in_file_order(self, tmp_path):
        from tmle_inputs.actors.catalog import trans_actors

        path = _write(tmp_path / "trans.csv", "ID,CHR\nRSID_102,12\nRSID_2,1\nRSID_102,12\n")

        assert trans_actors(path) == ["RSID_102", "RSID_2"]

    def test_id_column_required(self, tmp_path):
        from tmle_inputs.actors.catalog import trans_actors
        from tmle_inputs.config import ConfigurationError

        path = _write(tmp_path / "trans.csv", "SNP\nRSID_102\n")

        with pytest.raises(ConfigurationError, match="ID column"):
            trans_actors(path)


class TestReadSnpsFromCsv:
    """Test SNP tables with ID and CHR columns."""

    def test_none(self):
        from tmle_inputs.actors.catalog import read_snps_from_csv

        assert read_snps_from_csv(None) is None

    def test_deduplicated_on_id(self, tmp_path):
        from tmle_inputs.actors.catalog import read_snps_from_csv

        path = _write(tmp_path / "bqtls.csv", "ID,CHR\nRSID_17,1\nRSID_99,2\nRSID_17,1\n")

        table = read_snps_from_csv(path)

        assert table.ids == ("RSID_17", "RSID_99")
        assert table.chromosomes == ("1", "2")
        assert len(table) == 2
        assert table.name == "bqtls.csv"

    def test_chr_column_required(self, tmp_path):
        from tmle_inputs.actors.catalog import read_snps_from_csv
        from tmle_inputs.config import ConfigurationError

        path = _write(tmp_path / "bqtls.csv", "ID\nRSID_17\n")

        with pytest.raises(ConfigurationError, match="CHR"):
            read_snps_from_csv(path)


class TestTransActorsFromPrefix:
    """Test one table per trans-actor file."""

    def test_none(self):
        from tmle_inputs.actors.catalog import trans_actors_from_prefix

        assert trans_actors_from_prefix(None) is None

    def test_tables_not_merged(self, tmp_path):
        from tmle_inputs.actors.catalog import trans_actors_from_prefix

        _write(tmp_path / "trans_actors_1.csv", "ID,CHR\nRSID_102,12\n")
        _write(tmp_path / "trans_actors_2.csv", "ID,CHR\nRSID_2,1\nRSID_3,1\n")

        tables = trans_actors_from_prefix(tmp_path / "trans_actors_")

        assert [t.ids for t in tables] == [("RSID_102",), ("RSID_2", "RSID_3")]


class TestTreatmentsFromActors:
    """Test resolution of the three actor sources."""

    @pytest.fixture
    def actor_files(self, tmp_path):
        bqtls = _write(tmp_path / "bqtls.csv", "ID,CHR\nRSID_17,1\nRSID_99,2\n")
        _write(tmp_path / "trans_actors_1.csv", "ID,CHR\nRSID_102,12\n")
        _write(tmp_path / "trans_actors_2.csv", "ID,CHR\nRSID_2,1\n")
        env = _write(tmp_path / "env.csv", "SAMPLE_ID,TREAT_1,21000\ns1,1,0\n")
        return bqtls, env, tmp_path / "trans_actors_"

    def test_all_sources(self, actor_files):
        from tmle_inputs.actors.catalog import SourceKind, treatments_from_actors

        bqtl_file, env_file, prefix = actor_files

        bqtls, transactors, extra = treatments_from_actors(bqtl_file, env_file, prefix)

        assert bqtls.kind is SourceKind.SINGLE
        assert bqtls.ids == ["RSID_17", "RSID_99"]
        assert transactors.kind is SourceKind.MULTIPLE
        assert len(transactors.tables) == 2
        assert extra.kind is SourceKind.SINGLE
        assert extra.ids == ["TREAT_1", "21000"]

    def test_without_bqtls(self, actor_files):
        from tmle_inputs.actors.catalog import treatments_from_actors

        _, env_file, prefix = actor_files

        bqtls, transactors, extra = treatments_from_actors(None, env_file, prefix)

        assert bqtls.is_absent
        assert transactors.ids == ["RSID_102", "RSID_2"]
        assert not extra.is_absent

    def test_without_extra_treatments(self, actor_files):
        from tmle_inputs.actors.catalog import treatments_from_actors

        bqtl_file, _, prefix = actor_files

        _, _, extra = treatments_from_actors(bqtl_file, None, prefix)

        assert extra.is_absent

    @pytest.mark.parametrize("given", ["bqtls", "env", "trans"])
    def test_single_source_rejected(self, actor_files, given):
        from tmle_inputs.actors.catalog import treatments_from_actors
        from tmle_inputs.config import ConfigurationError

        bqtl_file, env_file, prefix = actor_files
        args = {
            "bqtl_file": bqtl_file if given == "bqtls" else None,
            "env_file": env_file if given == "env" else None,
            "trans_actors_prefix": prefix if given == "trans" else None,
        }

        with pytest.raises(ConfigurationError, match="At least two"):
            treatments_from_actors(**args)

    def test_all_variants_bqtls_first(self, actor_files):
        from tmle_inputs.actors.catalog import all_variants, treatments_from_actors

        bqtl_file, env_file, prefix = actor_files
        bqtls, transactors, _ = treatments_from_actors(bqtl_file, env_file, prefix)

        assert all_variants(bqtls, transactors) == ["RSID_17", "RSID_99", "RSID_102", "RSID_2"]
