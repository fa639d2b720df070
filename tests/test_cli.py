"""
Tests for InsightLane CLI.
"""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cli import InsightLaneCLI, build_parser, main
from config_manager import ConfigManager


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """CLI over a throwaway config with no generation backend."""
    monkeypatch.chdir(tmp_path)
    for name in ("ANTHROPIC_API_KEY", "INSIGHTLANE_ENDPOINT_URL", "INSIGHTLANE_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    with patch('cli.setup_from_config'):
        yield InsightLaneCLI(ConfigManager(str(tmp_path / ".insightlane" / "config.json")))


def run(cli, argv):
    args = build_parser().parse_args(argv)
    handler = getattr(cli, f"cmd_{args.command}")
    return handler(args)


def write_json(path, data):
    path.write_text(json.dumps(data))
    return str(path)


class TestParseCommand:
    """Test offline decoding of model output."""

    def test_structured_text(self, cli, capsys):
        """Should print the decoded result for inline text."""
        code = run(cli, ['parse', '{"summary": "S.", "suggestions": ["One.", "Two."]}', '--feature', 'mood'])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output == {"summary": "S.", "insights": ["One.", "Two."], "tier": "structured"}

    def test_from_file(self, cli, capsys, tmp_path):
        """Should read model output from a file."""
        path = tmp_path / "raw.txt"
        path.write_text("```json\n{\"summary\": \"From file.\", \"suggestions\": [\"Kept.\"]}\n```")

        run(cli, ['parse', '--file', str(path)])

        output = json.loads(capsys.readouterr().out)
        assert output["summary"] == "From file."
        assert output["insights"] == ["Kept."]


class TestJournalCommand:
    """Test journal summaries without a backend."""

    def test_static_without_backend(self, cli, capsys):
        """Should print the static result without a backend."""
        code = run(cli, ['journal', '--text', 'Today was long.'])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["tier"] == "static"

    def test_rule_based_with_sessions(self, cli, capsys, tmp_path):
        """Should use sessions for rule-based insights."""
        sessions = write_json(tmp_path / "sessions.json", [
            {"id": "a", "date": "2999-01-01T00:00:00", "tags": ["work"]},
        ])
        entries = write_json(tmp_path / "entries.json", [{"prompt": "Q", "response": "R"}])

        run(cli, ['journal', '--entries', entries, '--sessions', sessions])

        output = json.loads(capsys.readouterr().out)
        assert output["tier"] == "rule-based"

    def test_no_input(self, cli, capsys):
        """Should fail when no entries are given."""
        assert run(cli, ['journal']) == 1


class TestMoodCommand:
    """Test mood highlights and cache handling."""

    def test_fallback_highlights(self, cli, capsys):
        """Should print fallback highlights without sessions."""
        run(cli, ['mood'])

        output = json.loads(capsys.readouterr().out)
        assert output["sessions_analyzed"] == 0
        assert len(output["highlights"]) == 3

    def test_clear(self, cli, capsys):
        """Should clear the mood cache."""
        assert run(cli, ['mood', '--clear']) == 0
        assert "cleared" in capsys.readouterr().out


class TestVisionCommand:
    """Test vision extraction and lookup."""

    def test_latest_when_empty(self, cli, capsys):
        """Should report when no vision insights exist."""
        run(cli, ['vision', '--latest'])
        assert "No vision insights" in capsys.readouterr().out

    def test_not_an_exercise(self, cli, capsys, tmp_path):
        """Should skip conversations that are not a vision exercise."""
        messages = write_json(tmp_path / "m.json", [{"type": "user", "text": "Just a normal chat today."}])
        assert run(cli, ['vision', '--messages', messages]) == 0
        assert "does not look like" in capsys.readouterr().out

    def test_forced_extraction_is_stored(self, cli, capsys, tmp_path):
        """Should store a forced extraction and return it as latest."""
        messages = write_json(tmp_path / "m.json", [{"type": "user", "text": "I picture a calmer life by the sea."}])

        run(cli, ['vision', '--messages', messages, '--force', '--session-id', 'abc'])
        extracted = json.loads(capsys.readouterr().out)

        run(cli, ['vision', '--latest'])
        latest = json.loads(capsys.readouterr().out)

        assert extracted["source_session_id"] == "abc"
        assert latest == extracted


class TestConfigCommand:
    """Test config get/set."""

    def test_set_and_get(self, cli, capsys):
        """Should set and read back a config value."""
        run(cli, ['config', 'set', 'mood.top_k', '2'])
        assert cli.config.get('mood.top_k') == 2

        run(cli, ['config', 'get', 'mood.top_k'])
        assert "mood.top_k = 2" in capsys.readouterr().out


class TestMain:
    """Test the entry point."""

    def test_no_command_exits(self, capsys):
        """Should exit with status 1 without a command."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
