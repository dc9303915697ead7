"""Tests for command line parsing."""

from pathlib import Path

import pytest

from blobby.__main__ import build_settings, parse_args


class TestParseArgs:
    """Tests for parse_args."""

    def test_defaults(self):
        args = parse_args([])
        assert args.api_url is None
        assert args.board is None
        assert not args.generate
        assert not args.migrate
        assert args.verbose == 0

    def test_flags(self):
        args = parse_args(["--board", "Work", "--migrate", "-vv", "--config-dir", "/tmp/b"])
        assert args.board == "Work"
        assert args.migrate
        assert args.verbose == 2
        assert args.config_dir == Path("/tmp/b")

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            parse_args(["--version"])
        assert "blobby 0.1.0" in capsys.readouterr().out


class TestBuildSettings:
    """Tests for layering CLI arguments over the environment."""

    def test_cli_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("BLOBBY_API_URL", "https://env.test")
        monkeypatch.setenv("BLOBBY_BOARD", "Home")

        settings = build_settings(parse_args(["--board", "Work"]))

        assert settings.api_url == "https://env.test"
        assert settings.board == "Work"

    def test_api_url_flag(self, monkeypatch):
        monkeypatch.delenv("BLOBBY_API_URL", raising=False)
        monkeypatch.setenv("BLOBBY_API_TOKEN", "tok")

        settings = build_settings(parse_args(["--api-url", "https://cli.test"]))

        assert settings.api_url == "https://cli.test"
        assert settings.is_signed_in

    def test_not_signed_in_without_token(self, monkeypatch):
        monkeypatch.delenv("BLOBBY_API_TOKEN", raising=False)

        settings = build_settings(parse_args(["--api-url", "https://cli.test"]))

        assert not settings.is_signed_in
