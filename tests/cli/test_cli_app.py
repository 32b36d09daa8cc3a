"""
Tests for the command line entry point.

Commands that need Linear or the model are covered through the pipeline
tests; here we check argument parsing, configuration failures and the
commands that run offline.
"""

import json
import logging
from textwrap import dedent

import pytest

from linear_agent.cli.app import create_parser, main
from linear_agent.cli.exit_codes import ExitCode


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for var in ("LINEAR_API_KEY", "ANTHROPIC_API_KEY", "LINEAR_AGENT_DEFAULT_PRIORITY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "agent.yaml"
    path.write_text(
        dedent(
            f"""
            linear:
              api_key: lin_api_test
            llm:
              api_key: sk-ant-test
            agent:
              templates_path: {tmp_path / "templates.yaml"}
            """
        )
    )
    return str(path)


class TestParser:
    """Tests for create_parser."""

    def test_create_options(self):
        args = create_parser().parse_args(
            ["create", "Add dark mode", "--team", "FE", "-P", "2", "--dry-run", "-m"]
        )

        assert args.command == "create"
        assert args.text == "Add dark mode"
        assert (args.team, args.priority, args.dry_run, args.assign_to_me) == ("FE", 2, True, True)

    def test_batch_defaults(self):
        args = create_parser().parse_args(["batch", "Fix A", "Fix B"])

        assert args.texts == ["Fix A", "Fix B"]
        assert args.stop_on_error is False
        assert args.delay is None

    def test_update_arguments(self):
        args = create_parser().parse_args(["--json", "update", "ENG-12", "done", "--no-context"])
        assert (args.issue, args.text, args.json, args.no_context) == ("ENG-12", "done", True, True)

    def test_priority_out_of_range_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["create", "x", "--priority", "7"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])


class TestMain:
    """Tests for main() paths that never reach the network."""

    def test_missing_keys_is_config_error(self, tmp_path, capsys):
        empty = tmp_path / "empty.yaml"
        empty.write_text("agent:\n  default_priority: 2\n")

        code = main(["--no-color", "--config", str(empty), "create", "Add dark mode"])

        assert code == ExitCode.CONFIG_ERROR
        err = capsys.readouterr().err
        assert "Missing Linear API key" in err
        assert "Missing Anthropic API key" in err

    def test_unknown_template(self, config_file, capsys):
        code = main(["--config", config_file, "create", "login", "--template", "nope"])

        assert code == ExitCode.ERROR
        assert "Template not found: nope" in capsys.readouterr().err

    def test_batch_without_inputs(self, config_file, tmp_path):
        inputs = tmp_path / "inputs.txt"
        inputs.write_text("\n  \n")

        code = main(["--config", config_file, "batch", "--file", str(inputs)])

        assert code == ExitCode.VALIDATION_ERROR

    def test_batch_missing_file(self, config_file, tmp_path, capsys):
        code = main(["--config", config_file, "batch", "--file", str(tmp_path / "nope.txt")])

        assert code == ExitCode.ERROR
        assert "Cannot read" in capsys.readouterr().err


class TestTemplatesCommand:
    """Tests for the templates subcommand."""

    def test_list_builtins_as_json(self, config_file, capsys):
        code = main(["--json", "--config", config_file, "templates"])

        assert code == ExitCode.SUCCESS
        names = [template["name"] for template in json.loads(capsys.readouterr().out)]
        assert names == ["bug", "feature", "task", "urgent"]

    def test_save_then_list(self, config_file, capsys):
        definition = "perf:Speed up {title}:be:2"
        assert main(["--config", config_file, "templates", "save", definition]) == 0
        capsys.readouterr()

        main(["--json", "--config", config_file, "templates", "list"])

        templates = {t["name"]: t for t in json.loads(capsys.readouterr().out)}
        assert templates["perf"] == {
            "name": "perf",
            "pattern": "Speed up {title}",
            "team_key": "BE",
            "priority": 2,
        }

    def test_save_rejects_bad_definition(self, config_file, capsys):
        code = main(["--config", config_file, "templates", "save", "no-pattern"])

        assert code == ExitCode.ERROR
        assert "name:pattern" in capsys.readouterr().err

    def test_delete(self, config_file):
        main(["--config", config_file, "templates", "save", "perf:{title}"])

        assert main(["--config", config_file, "templates", "delete", "perf"]) == 0
        assert main(["--config", config_file, "templates", "delete", "bug"]) == ExitCode.ERROR

    def test_value_required(self, config_file):
        assert main(["--config", config_file, "templates", "delete"]) == ExitCode.ERROR
