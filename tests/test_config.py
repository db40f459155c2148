"""Tests for configuration loading and option resolution."""

import pytest

from git_store_meta.config import MetaConfig, load_meta_config, normalize_fields, resolve_options
from git_store_meta.constants import CONFIG_FILE, DEFAULT_FIELDS
from git_store_meta.errors import ConfigError
from git_store_meta.snapshot import read_snapshot_info


def write_snapshot(path, version="2.2.0", configs="", fields="<file>\t<type>\t<mtime>", records=()):
    lines = [f"# generated by\tgit-store-meta\t{version}\t{configs}", fields, *records]
    path.write_text("".join(f"{l}\n" for l in lines))
    return read_snapshot_info(path)


@pytest.fixture
def missing(tmp_path):
    return read_snapshot_info(tmp_path / ".git_store_meta")


class TestNormalizeFields:
    """Test field list normalization."""

    def test_comma_separated(self):
        assert normalize_fields(["mtime,mode", "uid"]) == ["file", "type", "mtime", "mode", "uid"]

    def test_unknown_and_duplicates_dropped(self):
        assert normalize_fields(["bogus,mtime", "mtime"]) == ["file", "type", "mtime"]

    def test_key_fields_moved_first(self):
        assert normalize_fields(["mtime,type,file"]) == ["file", "type", "mtime"]

    def test_whitespace_stripped(self):
        assert normalize_fields(["mtime, mode"]) == ["file", "type", "mtime", "mode"]

    def test_empty(self):
        assert normalize_fields([]) == ["file", "type"]


class TestLoadMetaConfig:
    """Test the repository defaults file."""

    def test_missing_file(self, tmp_path):
        config = load_meta_config(tmp_path)
        assert config == MetaConfig()
        assert config.exclude == []

    def test_valid_file(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text(
            "fields: [mtime, mode]\n"
            "directory: true\n"
            "exclude:\n"
            "  - '*.log'\n"
        )
        config = load_meta_config(tmp_path)
        assert config.fields == ["mtime", "mode"]
        assert config.directory is True
        assert config.topdir is None
        assert config.exclude == ["*.log"]

    def test_fields_as_string(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("fields: mtime,atime\n")
        assert load_meta_config(tmp_path).fields == ["mtime,atime"]

    def test_empty_file(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("")
        assert load_meta_config(tmp_path) == MetaConfig()

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("fields: [mtime\n")
        with pytest.raises(ConfigError, match="cannot read"):
            load_meta_config(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("- mtime\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_meta_config(tmp_path)

    def test_invalid_value(self, tmp_path):
        (tmp_path / CONFIG_FILE).write_text("directory: [1, 2]\n")
        with pytest.raises(ConfigError, match="invalid configuration"):
            load_meta_config(tmp_path)


class TestResolveOptions:
    """Test option precedence."""

    def test_defaults(self, missing):
        options = resolve_options("store", missing)
        assert options.fields == list(DEFAULT_FIELDS)
        assert options.directory is False
        assert options.topdir is False

    def test_cli_fields_for_store(self, missing):
        options = resolve_options("store", missing, fields=["mode"])
        assert options.fields == ["file", "type", "mode"]

    def test_header_over_config_file(self, tmp_path):
        info = write_snapshot(
            tmp_path / "snap",
            configs="--directory",
            fields="<file>\t<type>\t<atime>",
        )
        config = MetaConfig(fields=["mode"], directory=False, topdir=True)

        options = resolve_options("apply", info, config)

        assert options.fields == ["file", "type", "atime"]
        assert options.directory is True
        assert options.topdir is False

    def test_config_file_over_defaults(self, missing):
        config = MetaConfig(fields=["mode,uid"], directory=True, exclude=["build/"])
        options = resolve_options("store", missing, config)
        assert options.fields == ["file", "type", "mode", "uid"]
        assert options.directory is True
        assert options.exclude == ["build/"]

    def test_cli_over_header(self, tmp_path):
        info = write_snapshot(tmp_path / "snap", configs="--directory --topdir")
        options = resolve_options("store", info, fields=["mode"], directory=False, topdir=False)
        assert options.fields == ["file", "type", "mode"]
        assert options.directory is False
        assert options.topdir is False

    def test_update_ignores_cli(self, tmp_path):
        info = write_snapshot(tmp_path / "snap", configs="--directory")
        options = resolve_options("update", info, fields=["mode"], directory=False, topdir=True)
        assert options.fields == ["file", "type", "mtime"]
        assert options.directory is True
        assert options.topdir is False

    def test_header_fields_filtered(self, tmp_path):
        info = write_snapshot(tmp_path / "snap", fields="<file>\t<type>\t<future>\t<mtime>")
        options = resolve_options("apply", info)
        assert options.fields == ["file", "type", "mtime"]

    def test_old_snapshot_with_directory_entry(self, tmp_path):
        info = write_snapshot(
            tmp_path / "snap",
            version="1.1.0",
            records=["src\td\t2020-01-01T00:00:00Z"],
        )
        assert resolve_options("apply", info).directory is True

    def test_old_snapshot_without_directory_entry(self, tmp_path):
        info = write_snapshot(
            tmp_path / "snap",
            version="1.1.0",
            records=["a.txt\tf\t2020-01-01T00:00:00Z"],
        )
        assert resolve_options("apply", info).directory is False

    def test_old_snapshot_heuristic_yields_to_cli(self, tmp_path):
        info = write_snapshot(
            tmp_path / "snap",
            version="1.1.0",
            records=["src\td\t2020-01-01T00:00:00Z"],
        )
        assert resolve_options("apply", info, directory=False).directory is False

    def test_flags_passed_through(self, missing):
        options = resolve_options(
            "apply", missing, dry_run=True, verbose=True, force=True, target="meta.txt"
        )
        assert options.dry_run and options.verbose and options.force
        assert options.target == "meta.txt"

    def test_none_flags_keep_defaults(self, missing):
        options = resolve_options("store", missing, target=None)
        assert options.target == ".git_store_meta"
