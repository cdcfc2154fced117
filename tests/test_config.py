"""
Test parser configuration (config.py).
"""

from pathlib import Path

import pytest

from formgate.config import DEFAULT_CONFIG, MEGABYTE, FormConfig, parse_size
from formgate.faults import ConfigInvalidFault


class TestParseSize:

    @pytest.mark.parametrize("raw, expected", [
        (512, 512),
        ("512", 512),
        ("1KiB", 1024),
        ("1kb", 1024),
        ("10MiB", 10 * MEGABYTE),
        (" 2 MB ", 2 * MEGABYTE),
        ("1GiB", 1024 * MEGABYTE),
    ])
    def test_valid(self, raw, expected):
        assert parse_size(raw) == expected

    @pytest.mark.parametrize("raw", ["", "ten", "1.5MiB", "10 parsecs", True])
    def test_invalid(self, raw):
        with pytest.raises(ConfigInvalidFault):
            parse_size(raw, "max_memory")


class TestFormConfig:

    def test_defaults(self):
        assert DEFAULT_CONFIG.max_form_size == MEGABYTE
        assert DEFAULT_CONFIG.max_form_with_files_size == 10 * MEGABYTE
        assert DEFAULT_CONFIG.max_memory == 10 * MEGABYTE
        assert DEFAULT_CONFIG.max_fields == 1000
        assert DEFAULT_CONFIG.upload_dir is None

    @pytest.mark.parametrize("overrides", [
        {"max_form_size": 0},
        {"max_form_with_files_size": -1},
        {"max_fields": 0},
        {"max_memory": -1},
        {"max_form_size": "big"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigInvalidFault) as exc_info:
            FormConfig(**overrides)
        assert exc_info.value.metadata["key"] == next(iter(overrides))

    def test_zero_memory_allowed(self):
        assert FormConfig(max_memory=0).max_memory == 0

    def test_upload_dir_coerced_to_path(self, tmp_path):
        config = FormConfig(upload_dir=str(tmp_path))
        assert config.upload_dir == tmp_path

    def test_with_overrides(self):
        config = DEFAULT_CONFIG.with_overrides(max_fields=5)
        assert config.max_fields == 5
        assert DEFAULT_CONFIG.max_fields == 1000

        with pytest.raises(ConfigInvalidFault):
            DEFAULT_CONFIG.with_overrides(max_feilds=5)

    def test_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_CONFIG.max_fields = 3


class TestFromEnv:

    def test_from_environ(self, tmp_path):
        config = FormConfig.from_env(environ={
            "FORMGATE_MAX_FORM_SIZE": "64KiB",
            "FORMGATE_MAX_MEMORY": "0",
            "FORMGATE_MAX_FIELDS": "20",
            "FORMGATE_UPLOAD_DIR": str(tmp_path),
            "UNRELATED": "x",
        })
        assert config.max_form_size == 64 * 1024
        assert config.max_form_with_files_size == 10 * MEGABYTE
        assert config.max_memory == 0
        assert config.max_fields == 20
        assert config.upload_dir == tmp_path

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("FORMGATE_MAX_FORM_SIZE=2MiB\nFORMGATE_MAX_FIELDS=50\n")

        config = FormConfig.from_env(env_file=env_file, environ={"FORMGATE_MAX_FIELDS": "7"})
        assert config.max_form_size == 2 * MEGABYTE
        assert config.max_fields == 7

    def test_custom_prefix(self):
        config = FormConfig.from_env(prefix="APP_", environ={"APP_MAX_FIELDS": "3"})
        assert config.max_fields == 3

    def test_missing_env_file_ignored(self, tmp_path):
        config = FormConfig.from_env(env_file=tmp_path / "absent.env", environ={})
        assert config == FormConfig()

    def test_process_environment(self, monkeypatch):
        monkeypatch.setenv("FORMGATE_MAX_FORM_SIZE", "4096")
        assert FormConfig.from_env().max_form_size == 4096

    def test_bad_value(self):
        with pytest.raises(ConfigInvalidFault):
            FormConfig.from_env(environ={"FORMGATE_MAX_FIELDS": "many"})

    def test_from_mapping(self):
        config = FormConfig.from_mapping({"max_memory": "1MiB", "upload_dir": "/tmp/x"})
        assert config.max_memory == MEGABYTE
        assert config.upload_dir == Path("/tmp/x")
