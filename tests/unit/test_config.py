"""
Unit tests for ServerConfig.
"""

import dataclasses
from pathlib import Path

import pytest

from fileserver.config import ServerConfig


class TestDefaults:

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.workers == 10
        assert config.queue_size == 0
        assert config.read_timeout is None
        assert config.contain_paths is False
        assert config.password_file == ".password"
        assert config.realm == "667 Server"
        assert config.log_format == "text"

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ServerConfig().port = 9090

    def test_with_overrides_ignores_none(self, tmp_path: Path):
        config = ServerConfig().with_overrides(port=9090, host=None, document_root=str(tmp_path))

        assert config.port == 9090
        assert config.host == "0.0.0.0"
        assert config.document_root == str(tmp_path)


class TestValidate:

    def test_valid(self, tmp_path: Path):
        ServerConfig(document_root=str(tmp_path)).validate()

    @pytest.mark.parametrize("port", [0, 1, 65535])
    def test_port_bounds_ok(self, tmp_path: Path, port: int):
        ServerConfig(port=port, document_root=str(tmp_path)).validate()

    @pytest.mark.parametrize("port", [-1, 65536, 100000])
    def test_port_out_of_range(self, tmp_path: Path, port: int):
        with pytest.raises(ValueError, match="port"):
            ServerConfig(port=port, document_root=str(tmp_path)).validate()

    def test_missing_document_root(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Document root"):
            ServerConfig(document_root=str(tmp_path / "missing")).validate()

    def test_document_root_is_a_file(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("x")

        with pytest.raises(ValueError):
            ServerConfig(document_root=str(path)).validate()

    @pytest.mark.parametrize("overrides", [
        {"workers": 0},
        {"queue_size": -1},
        {"backlog": 0},
        {"read_timeout": 0},
        {"read_timeout": -2.5},
        {"log_format": "xml"},
        {"log_level": "LOUD"},
        {"password_file": ""},
        {"password_file": "sub/.password"},
    ])
    def test_invalid_values(self, tmp_path: Path, overrides: dict):
        config = ServerConfig(document_root=str(tmp_path)).with_overrides(**overrides)

        with pytest.raises(ValueError):
            config.validate()


class TestFromEnv:

    def test_reads_environment(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("FILESERVER_HOST", "127.0.0.1")
        monkeypatch.setenv("FILESERVER_PORT", "9000")
        monkeypatch.setenv("FILESERVER_ROOT", str(tmp_path))
        monkeypatch.setenv("FILESERVER_WORKERS", "3")
        monkeypatch.setenv("FILESERVER_READ_TIMEOUT", "2.5")
        monkeypatch.setenv("FILESERVER_LOG_LEVEL", "debug")

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.document_root == str(tmp_path)
        assert config.workers == 3
        assert config.read_timeout == 2.5
        assert config.log_level == "DEBUG"

    def test_defaults_without_environment(self, monkeypatch):
        for name in ("HOST", "PORT", "ROOT", "WORKERS", "READ_TIMEOUT", "LOG_LEVEL"):
            monkeypatch.delenv(f"FILESERVER_{name}", raising=False)

        assert ServerConfig.from_env() == ServerConfig()

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("FILESERVER_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()
