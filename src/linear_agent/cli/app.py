"""
CLI App - Main entry point for the linear-agent command line tool.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from linear_agent.adapters.cache import WorkspaceSnapshotCache
from linear_agent.adapters.config import EnvironmentConfigProvider
from linear_agent.adapters.linear import LinearAdapter, LinearGraphQLClient
from linear_agent.adapters.llm import AnthropicProvider
from linear_agent.application.agent import (
    AgentPipeline,
    BatchOptions,
    BatchOrchestrator,
    CreateOptions,
    ExtractionClient,
    PipelineOutcome,
    TemplateManager,
    UpdateOptions,
    parse_batch_input,
)
from linear_agent.application.agent.templates import parse_template_definition
from linear_agent.core.exceptions import AuthenticationError, ConfigError, LinearAgentError
from linear_agent.core.ports.config_provider import AppConfig

from .exit_codes import ExitCode
from .logging import setup_logging
from .output import Console


logger = logging.getLogger("linear_agent")


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser for linear-agent.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="linear-agent",
        description="Create and update Linear issues from natural language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create an issue
  linear-agent create "Add dark mode support" --team FE --priority 2

  # Preview the extraction without creating anything
  linear-agent create "Performance issue in dashboard" --dry-run

  # Use a template
  linear-agent create "login validation" --template bug

  # Update an existing issue
  linear-agent update ENG-123 "Completed the implementation, tests passing"

  # Create many issues, one per line
  linear-agent batch --file issues.txt --team ENG
  echo -e "Fix bug A\\nFix bug B" | linear-agent batch --team ENG

  # Show the workspace context sent to the model
  linear-agent context
""",
    )

    # Shared options
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--model", help="Anthropic model to use")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print results and errors")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--log-format", choices=["text", "json"], default="text", help="Log output format"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # create
    create = subparsers.add_parser("create", help="Create an issue from text")
    create.add_argument("text", help="Natural language description of the issue")
    _add_write_options(create)
    create.add_argument("--project", help="Project name or ID")
    create.add_argument("--template", help="Apply a saved template to the text")
    create.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    create.set_defaults(handler=cmd_create)

    # update
    update = subparsers.add_parser("update", help="Update an existing issue from text")
    update.add_argument("issue", help="Issue identifier, e.g. ENG-123")
    update.add_argument("text", help="Natural language description of the changes")
    update.add_argument("--dry-run", "-d", action="store_true", help="Show extraction only")
    update.add_argument("--no-context", action="store_true", help="Skip workspace context")
    update.set_defaults(handler=cmd_update)

    # batch
    batch = subparsers.add_parser("batch", help="Create one issue per input line")
    batch.add_argument("texts", nargs="*", help="Inputs; read from --file or stdin when omitted")
    batch.add_argument("--file", "-f", help="File with one input per line")
    _add_write_options(batch)
    batch.add_argument(
        "--stop-on-error", action="store_true", help="Stop at the first failed item"
    )
    batch.add_argument("--delay", type=float, help="Seconds to wait between items")
    batch.set_defaults(handler=cmd_batch)

    # templates
    templates = subparsers.add_parser("templates", help="List or manage templates")
    templates.add_argument(
        "action", nargs="?", choices=["list", "save", "delete"], default="list"
    )
    templates.add_argument(
        "value", nargs="?", help="name:pattern[:team[:priority]] to save, or a name to delete"
    )
    templates.set_defaults(handler=cmd_templates)

    # context
    context = subparsers.add_parser("context", help="Show cached workspace context")
    context.set_defaults(handler=cmd_context)

    return parser


def _add_write_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dry-run", "-d", action="store_true", help="Do not create anything")
    parser.add_argument("--team", "-t", help="Team key override")
    parser.add_argument("--priority", "-P", type=int, choices=range(5), help="Priority 0-4")
    parser.add_argument("--assign-to-me", "-m", action="store_true", help="Assign to yourself")
    parser.add_argument("--no-context", action="store_true", help="Skip workspace context")


# -----------------------------------------------------------------------------
# Wiring
# -----------------------------------------------------------------------------


@dataclass
class Services:
    """Everything a command needs to talk to Linear and the model."""

    config: AppConfig
    tracker: LinearAdapter
    cache: WorkspaceSnapshotCache
    extractor: ExtractionClient

    def pipeline(self) -> AgentPipeline:
        return AgentPipeline(self.extractor, self.tracker, self.cache, self.config.agent)


@asynccontextmanager
async def open_services(config: AppConfig, console: Console):
    """Connect to Linear for the duration of a command."""
    client = LinearGraphQLClient(
        api_key=config.linear.api_key,
        api_url=config.linear.api_url,
        timeout=config.linear.timeout,
    )
    async with client:
        tracker = LinearAdapter(client)

        def on_retry(attempt: int, error: BaseException, delay: float) -> None:
            console.debug(f"Model call retry {attempt} in {delay:.1f}s: {error}")

        extractor = ExtractionClient(AnthropicProvider(config.llm), config.llm, on_retry=on_retry)
        cache = WorkspaceSnapshotCache(tracker, ttl=config.agent.cache_ttl)
        yield Services(config=config, tracker=tracker, cache=cache, extractor=extractor)


def config_provider(args: argparse.Namespace) -> EnvironmentConfigProvider:
    return EnvironmentConfigProvider(
        config_file=Path(args.config) if args.config else None,
        cli_overrides={"model": getattr(args, "model", None)},
    )


def load_config(args: argparse.Namespace, console: Console) -> AppConfig | None:
    """Load and validate configuration, printing errors on failure."""
    provider = config_provider(args)

    errors = provider.validate()
    if errors:
        console.config_errors(errors)
        return None

    config = provider.load()
    logger.debug(f"Loaded configuration from {provider.name}")
    return config


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


async def cmd_create(args: argparse.Namespace, console: Console, config: AppConfig) -> int:
    text = args.text
    if args.template:
        templates = TemplateManager(config.agent.templates_path)
        applied = templates.apply(args.template, {"title": text})
        if applied is None:
            console.error(f"Template not found: {args.template}")
            console.detail("Use 'linear-agent templates' to list templates")
            return ExitCode.ERROR
        text = applied.input
        console.debug(f"Template input: {text}")

    options = CreateOptions(
        team_key=args.team,
        project=args.project,
        priority=args.priority,
        assign_to_me=args.assign_to_me,
        dry_run=args.dry_run,
        use_context=False if args.no_context else None,
    )

    def ask(outcome: PipelineOutcome) -> bool:
        _show_preview(console, outcome)
        return console.confirm("Create this issue?")

    interactive = sys.stdin.isatty() and not console.json_mode
    confirm = ask if config.agent.confirm and not args.yes and interactive else None

    if args.dry_run:
        console.dry_run_banner()

    async with open_services(config, console) as services:
        outcome = await services.pipeline().create(text, options, confirm=confirm)

    if args.dry_run and outcome.record is not None:
        _show_preview(console, outcome)
    console.outcome(outcome)
    return outcome.exit_code


def _show_preview(console: Console, outcome: PipelineOutcome) -> None:
    if outcome.record is None:
        return
    console.section("Extracted issue")
    console.record(outcome.record)
    if outcome.resolution and outcome.resolution.team:
        team = outcome.resolution.team
        console.field("Resolved", f"{team.key} ({team.name})")


async def cmd_update(args: argparse.Namespace, console: Console, config: AppConfig) -> int:
    options = UpdateOptions(
        dry_run=args.dry_run,
        use_context=False if args.no_context else None,
    )
    if args.dry_run:
        console.dry_run_banner()

    async with open_services(config, console) as services:
        outcome = await services.pipeline().update(args.issue, args.text, options)

    if outcome.update is not None:
        console.section(f"Changes for {args.issue}")
        console.update_record(outcome.update)
    console.outcome(outcome)
    return outcome.exit_code


def _read_batch_inputs(args: argparse.Namespace) -> list[str]:
    if args.file:
        return parse_batch_input(Path(args.file).read_text(encoding="utf-8"))
    if args.texts:
        return [text.strip() for text in args.texts if text.strip()]
    if not sys.stdin.isatty():
        return parse_batch_input(sys.stdin.read())
    return []


async def cmd_batch(args: argparse.Namespace, console: Console, config: AppConfig) -> int:
    try:
        inputs = _read_batch_inputs(args)
    except OSError as e:
        console.error(f"Cannot read {args.file}: {e}")
        return ExitCode.ERROR

    if not inputs:
        console.error("No inputs given. Pass text, --file, or pipe lines on stdin.")
        return ExitCode.VALIDATION_ERROR

    options = BatchOptions(
        team_key=args.team,
        priority=args.priority,
        dry_run=args.dry_run,
        continue_on_error=not args.stop_on_error,
        delay=config.agent.batch_delay if args.delay is None else args.delay,
    )

    if args.dry_run:
        console.dry_run_banner()
    console.section(f"Processing {len(inputs)} input(s)")

    async with open_services(config, console) as services:
        pipeline = services.pipeline()
        snapshot = await pipeline.load_snapshot(False if args.no_context else None)
        if args.assign_to_me:
            user = snapshot.user
            if not user.id:
                user = await services.tracker.get_current_user()
            options.assignee_id = user.id

        orchestrator = BatchOrchestrator(
            services.extractor, services.tracker, snapshot, config.agent
        )
        result = await orchestrator.process_batch(inputs, options, on_progress=console.batch_item)

    console.batch_result(result)
    return ExitCode.SUCCESS if result.failed == 0 else ExitCode.WRITE_FAILURE


async def cmd_context(args: argparse.Namespace, console: Console, config: AppConfig) -> int:
    async with open_services(config, console) as services:
        snapshot = await services.cache.fetch()
    console.snapshot(snapshot)
    return ExitCode.SUCCESS


def cmd_templates(args: argparse.Namespace, console: Console, config: AppConfig) -> int:
    manager = TemplateManager(config.agent.templates_path)

    if args.action == "list":
        console.templates(manager.list())
        return ExitCode.SUCCESS

    if not args.value:
        console.error(f"templates {args.action} needs a value")
        return ExitCode.ERROR

    if args.action == "save":
        template = parse_template_definition(args.value)
        if template is None:
            console.error("Template format: name:pattern[:team[:priority]]")
            return ExitCode.ERROR
        manager.save(template)
        console.success(f"Saved template {template.name}")
        return ExitCode.SUCCESS

    if manager.delete(args.value):
        console.success(f"Deleted template {args.value}")
        return ExitCode.SUCCESS
    console.error(f"Cannot delete template {args.value} (missing or built-in)")
    return ExitCode.ERROR


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the linear-agent CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_format=args.log_format,
        log_file=args.log_file,
        static_fields={"service": "linear-agent"} if args.log_format == "json" else None,
    )

    console = Console(
        color=not args.no_color,
        verbose=args.verbose,
        quiet=args.quiet,
        json_mode=args.json,
    )

    try:
        if args.command == "templates":
            return cmd_templates(args, console, config_provider(args).load())

        config = load_config(args, console)
        if config is None:
            return ExitCode.CONFIG_ERROR

        handler: Callable[[Any, Console, AppConfig], Awaitable[int]] = args.handler
        return asyncio.run(handler(args, console, config))

    except KeyboardInterrupt:
        console.print()
        console.warning("Interrupted by user")
        return ExitCode.SIGINT

    except (ConfigError, AuthenticationError) as e:
        console.error(str(e))
        return ExitCode.CONFIG_ERROR

    except LinearAgentError as e:
        console.error(str(e))
        if args.verbose:
            logger.exception("Command failed")
        return ExitCode.ERROR


def run() -> None:
    """
    Entry point for the console script.

    Calls main() and exits with its return code.
    """
    sys.exit(main())


if __name__ == "__main__":
    run()
