# tests/core/test_config.py
"""Tests for configuration schema and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sricache.core.config import ReaderSettings, ReadOptions, load_settings


class TestReadOptions:
    """Per-call read options."""

    def test_defaults(self) -> None:
        assert ReadOptions().size is None

    def test_coerce_none(self) -> None:
        assert ReadOptions.coerce(None) == ReadOptions()

    def test_coerce_mapping_ignores_unknown_keys(self) -> None:
        opts = ReadOptions.coerce({"size": 10, "memoize": True, "integrity": "sha1-x"})

        assert opts.size == 10

    def test_coerce_instance_passthrough(self) -> None:
        opts = ReadOptions(size=3)

        assert ReadOptions.coerce(opts) is opts

    def test_negative_size_accepted(self) -> None:
        assert ReadOptions(size=-1).size == -1

    @pytest.mark.parametrize("size", ["3", b"3", True, [3], {"n": 3}])
    def test_non_numeric_size_ignored(self, size: object) -> None:
        assert ReadOptions.coerce({"size": size}).size is None

    def test_integral_float_size_becomes_int(self) -> None:
        size = ReadOptions.coerce({"size": 3.0}).size

        assert size == 3
        assert isinstance(size, int)

    def test_fractional_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReadOptions.coerce({"size": 3.5})

    def test_options_are_frozen(self) -> None:
        opts = ReadOptions(size=1)
        with pytest.raises(ValidationError):
            opts.size = 2  # type: ignore[misc]


class TestReaderSettings:
    """Process-level reader settings."""

    def test_defaults(self) -> None:
        import sys

        settings = ReaderSettings()
        assert settings.platform == sys.platform
        assert settings.stream_chunk_size == 64 * 1024
        assert settings.max_concurrency is None
        assert settings.log_level == "INFO"
        assert settings.json_logs is False

    @pytest.mark.parametrize("field", ["stream_chunk_size", "stream_max_buffered_chunks", "max_concurrency"])
    def test_positive_fields(self, field: str) -> None:
        with pytest.raises(ValidationError):
            ReaderSettings(**{field: 0})

    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReaderSettings(chunk=1)  # type: ignore[call-arg]

    def test_log_level_normalized(self) -> None:
        assert ReaderSettings(log_level="debug").log_level == "DEBUG"  # type: ignore[arg-type]


class TestLoadSettings:
    """Dynaconf-backed loading."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("platform: win32\nmax_concurrency: 4\nstream_chunk_size: 1024\n")

        settings = load_settings(config_file)

        assert settings.platform == "win32"
        assert settings.max_concurrency == 4
        assert settings.stream_chunk_size == 1024

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("max_concurrency: 4\n")
        monkeypatch.setenv("SRICACHE_MAX_CONCURRENCY", "8")

        assert load_settings(config_file).max_concurrency == 8

    def test_env_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SRICACHE_PLATFORM", "win32")

        assert load_settings().platform == "win32"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("stream_chunk_size: 0\n")

        with pytest.raises(ValidationError):
            load_settings(config_file)
