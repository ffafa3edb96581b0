"""Tests for the plugcache CLI entrypoint."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from plugcache.application.use_cases import FileStatus, FormatReport
from plugcache.domain.plugins import ArtifactFetchError, CatalogFetchError
from plugcache.interfaces.cli import cli


@pytest.fixture()
def run_format(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    mock = AsyncMock(return_value=FormatReport())
    monkeypatch.setattr(cli, "run_format", mock)
    monkeypatch.setattr(cli, "configure_logging", lambda config: {})
    for name in ("PLUGCACHE_CACHE_DIR", "PLUGCACHE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return mock


class TestParseArgs:
    def test_defaults(self) -> None:
        args = cli._parse_args([])
        assert args.root is None
        assert args.dry_run is False
        assert args.verbose is False
        assert args.config is None

    def test_all_flags(self) -> None:
        args = cli._parse_args(
            [
                "--root",
                "src",
                "--dry-run",
                "--verbose",
                "--cache-dir",
                "/tmp/c",
                "--log-level",
                "DEBUG",
                "--log-format",
                "json",
            ]
        )
        assert args.root == "src"
        assert args.dry_run is True
        assert args.verbose is True
        assert args.cache_dir == "/tmp/c"
        assert args.log_level == "DEBUG"
        assert args.log_format == "json"

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(SystemExit):
            cli._parse_args(["--log-level", "TRACE"])


class TestStart:
    def test_success_returns_zero(
        self, run_format: AsyncMock, tmp_path: Path
    ) -> None:
        code = cli.start(["--root", str(tmp_path), "--dry-run", "--verbose"])

        assert code == 0
        run_format.assert_awaited_once()
        kwargs: dict[str, Any] = run_format.await_args.kwargs
        assert kwargs["root"] == tmp_path.resolve()
        assert kwargs["dry_run"] is True
        assert kwargs["verbose"] is True

    def test_root_defaults_to_cwd(
        self,
        run_format: AsyncMock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cli.start([])
        assert run_format.await_args.kwargs["root"] == Path.cwd()

    def test_cli_overrides_reach_config(
        self, run_format: AsyncMock, tmp_path: Path
    ) -> None:
        cli.start(["--cache-dir", str(tmp_path / "c"), "--log-level", "ERROR"])

        config = run_format.await_args.args[0]
        assert config.cache_dir == tmp_path / "c"
        assert config.log_level == "ERROR"

    @pytest.mark.parametrize(
        "error",
        [
            ArtifactFetchError("boom", url="https://x/y.wasm", status=500),
            CatalogFetchError("boom", url="https://x/info.json"),
            PermissionError("denied"),
        ],
    )
    def test_failures_return_one(
        self, run_format: AsyncMock, error: Exception
    ) -> None:
        run_format.side_effect = error
        assert cli.start([]) == 1

    def test_unexpected_errors_propagate(self, run_format: AsyncMock) -> None:
        run_format.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            cli.start([])


class TestPrintStatus:
    def test_prints_tag_and_path(self, capsys: pytest.CaptureFixture[str]) -> None:
        cli._print_status(FileStatus.FORMATTED, Path("/p/a.json"))
        assert capsys.readouterr().out == "[FORMATTED] /p/a.json\n"
