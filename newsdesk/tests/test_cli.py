"""
Tests for the command-line interface.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from click.testing import CliRunner

from newsdesk import __main__ as cli_module
from newsdesk.models import ResolvedSource
from newsdesk.orchestrator import SourceNotFoundError


def _orchestrator(monkeypatch, **resolve_one_kwargs):
    mock = MagicMock()
    mock.resolve_one = AsyncMock(**resolve_one_kwargs)
    monkeypatch.setattr(cli_module, "get_orchestrator", lambda: mock)
    return mock


class TestCli:

    def test_sources_lists_registry(self):
        result = CliRunner().invoke(cli_module.cli, ["sources", "--group", "social"])

        assert result.exit_code == 0
        assert "x-trending" in result.output
        assert "bbc" not in result.output

    def test_fetch_json(self, monkeypatch):
        resolved = ResolvedSource(
            source_id="bbc", name="BBC News", color="#BB1919", icon="*",
            platform=None, articles=[], resolved_at=datetime.now(timezone.utc),
        )
        mock = _orchestrator(monkeypatch, return_value=resolved)

        result = CliRunner().invoke(cli_module.cli, ["fetch", "bbc", "--refresh", "--json-output"])

        assert result.exit_code == 0
        assert '"id": "bbc"' in result.output
        mock.resolve_one.assert_awaited_once_with("bbc", force_refresh=True)

    def test_fetch_unknown_source_aborts(self, monkeypatch):
        _orchestrator(monkeypatch, side_effect=SourceNotFoundError("nope"))

        result = CliRunner().invoke(cli_module.cli, ["fetch", "nope"])

        assert result.exit_code != 0
        assert "Source not found: nope" in result.output
