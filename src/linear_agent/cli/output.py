"""
Output - Console output formatting.

Provides pretty-printed output with colors and formatting.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from linear_agent.application.agent import (
    AgentTemplate,
    BatchItemResult,
    BatchResult,
    OutcomeStatus,
    PipelineOutcome,
)
from linear_agent.core.domain.entities import (
    ExtractedRecord,
    ExtractedUpdateRecord,
    WorkspaceSnapshot,
)
from linear_agent.core.domain.enums import Priority


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"

    BG_YELLOW = "\033[43m"


class Symbols:
    """Unicode symbols for terminal output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"
    GEAR = "⚙"
    LINK = "🔗"

    BOX_H = "─"


class Console:
    """
    Console output helper with colors and formatting.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        quiet: Whether to suppress most output.
        json_mode: Whether to print results as JSON instead of text.
    """

    def __init__(
        self,
        color: bool = True,
        verbose: bool = False,
        quiet: bool = False,
        json_mode: bool = False,
    ):
        """
        Initialize the console output helper.

        Args:
            color: Enable colored output. Disabled automatically if stdout is not a TTY.
            verbose: Enable debug output.
            quiet: Suppress everything except errors and results.
            json_mode: Print results as JSON.
        """
        self.json_mode = json_mode
        self.color = color and sys.stdout.isatty() and not json_mode
        self.verbose = verbose
        self.quiet = quiet or json_mode

        if self.quiet:
            self.verbose = False

    def _c(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def print(self, text: str = "", force: bool = False) -> None:
        if self.quiet and not force:
            return
        print(text)

    def header(self, text: str) -> None:
        if self.quiet:
            return
        width = max(len(text) + 4, 50)
        border = self._c(Symbols.BOX_H * width, Colors.CYAN) if self.color else "-" * width

        self.print()
        self.print(border)
        self.print(self._c(f"  {text}", Colors.BOLD, Colors.CYAN))
        self.print(border)
        self.print()

    def section(self, text: str) -> None:
        if self.quiet:
            return
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """Print an error. Errors go to stderr and always print."""
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED), file=sys.stderr)

    def warning(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        if self.quiet:
            return
        self.print(self._c(f"    {text}", Colors.DIM))

    def debug(self, text: str) -> None:
        if self.verbose:
            self.print(self._c(f"  [DEBUG] {text}", Colors.DIM))

    def item(self, text: str, status: str | None = None) -> None:
        """
        Print a list item with optional status indicator.

        Args:
            text: Item text to display.
            status: "ok", "skip", "fail" or any other short label.
        """
        if self.quiet:
            return
        status_str = ""
        if status == "ok":
            status_str = self._c(f" [{Symbols.CHECK}]", Colors.GREEN)
        elif status == "skip":
            status_str = self._c(" [SKIP]", Colors.YELLOW)
        elif status == "fail":
            status_str = self._c(f" [{Symbols.CROSS}]", Colors.RED)
        elif status:
            status_str = self._c(f" [{status}]", Colors.DIM)

        self.print(f"    {Symbols.DOT} {text}{status_str}")

    def field(self, label: str, value: Any) -> None:
        if self.quiet or value in (None, "", []):
            return
        name = f"{label}:"
        self.print(f"  {self._c(name.ljust(13), Colors.DIM)}{value}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        if self.quiet:
            return
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        header_cells = (self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers))
        self.print("  " + "  ".join(header_cells))
        self.print("  " + "  ".join("-" * w for w in widths))
        for row in rows:
            self.print("  " + "  ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))

    def dry_run_banner(self) -> None:
        if self.quiet:
            return
        self.print()
        banner = f"  {Symbols.GEAR} DRY-RUN MODE - No changes will be made"
        if self.color:
            self.print(f"{Colors.BG_YELLOW}{Colors.BOLD}{banner}{Colors.RESET}")
        else:
            self.print(f"*** {banner} ***")
        self.print()

    def config_errors(self, errors: list[str]) -> None:
        """Print configuration errors. Always prints."""
        self.error("Configuration errors:")
        for error in errors:
            print(f"    {Symbols.DOT} {error}", file=sys.stderr)

    def json(self, data: Any) -> None:
        print(json.dumps(data, indent=2, default=str))

    def confirm(self, message: str) -> bool:
        """Ask a yes/no question; anything but y/yes (or an interrupt) is no."""
        prompt = self._c(f"\n{Symbols.WARN} {message} (y/N): ", Colors.YELLOW)
        try:
            response = input(prompt).strip().lower()
            return response in ("y", "yes")
        except (EOFError, KeyboardInterrupt):
            self.print()
            return False

    # -------------------------------------------------------------------------
    # Domain output
    # -------------------------------------------------------------------------

    def record(self, record: ExtractedRecord, snapshot: WorkspaceSnapshot | None = None) -> None:
        """Print an extracted record."""
        team = record.team_key
        if record.team_id and snapshot is not None:
            resolved = snapshot.find_team_by_id(record.team_id)
            if resolved:
                team = f"{resolved.key} ({resolved.name})"

        self.field("Title", self._c(record.title, Colors.BOLD))
        self.field("Team", team)
        self.field("Project", record.project_name or record.project_id)
        if record.priority is not None:
            self.field("Priority", Priority.label_for(record.priority))
        self.field("Estimate", record.estimate)
        self.field("Type", record.issue_type.display_name if record.issue_type else None)
        self.field("Labels", ", ".join(record.labels))
        self.field("Due", record.due_date)
        if record.description:
            self.field("Description", record.description)
        if record.dropped_fields:
            self.debug(f"Dropped fields: {', '.join(record.dropped_fields)}")

    def update_record(self, update: ExtractedUpdateRecord) -> None:
        """Print extracted update changes."""
        if update.status_change:
            self.field("Status", self._c(f"{Symbols.ARROW} {update.status_change}", Colors.YELLOW))
        self.field("Comment", update.comment)
        if update.priority_change is not None:
            self.field("Priority", f"{Symbols.ARROW} {Priority.label_for(update.priority_change)}")
        self.field("Add labels", ", ".join(update.add_labels))
        self.field("Remove labels", ", ".join(update.remove_labels))
        self.field("Title", update.title_update)
        self.field("Append", update.append_description)
        self.field("Assignee", update.assignee_change)
        self.field("Summary", update.summary)

    def outcome(self, outcome: PipelineOutcome) -> None:
        """Print a pipeline outcome, as JSON in JSON mode."""
        if self.json_mode:
            self.json(
                {
                    "status": outcome.status.value,
                    "success": outcome.success,
                    "issue": (
                        {
                            "id": outcome.issue.id,
                            "identifier": outcome.issue.identifier,
                            "url": outcome.issue.url,
                        }
                        if outcome.issue
                        else None
                    ),
                    "record": outcome.record.to_dict() if outcome.record else None,
                    "errors": outcome.errors,
                    "warnings": outcome.warnings,
                }
            )
            return

        for warning in outcome.warnings:
            self.warning(warning)
        for error in outcome.errors:
            self.error(error)
        for hint in outcome.suggestions:
            self.detail(hint)

        if outcome.labels and outcome.labels.created_labels:
            self.info(f"Created labels: {', '.join(outcome.labels.created_labels)}")

        if outcome.status == OutcomeStatus.CREATED and outcome.issue:
            self.print()
            self.success(f"Created {self._c(outcome.issue.identifier, Colors.BOLD)}")
            if outcome.issue.url:
                self.detail(f"{Symbols.LINK} {outcome.issue.url}")
        elif outcome.status == OutcomeStatus.UPDATED and outcome.issue:
            self.success(f"Updated {self._c(outcome.issue.identifier, Colors.BOLD)}")
        elif outcome.status == OutcomeStatus.NO_CHANGES:
            self.warning("No changes detected from input.")
        elif outcome.status == OutcomeStatus.DRY_RUN:
            self.detail("No changes made (dry run mode)")

    def batch_item(self, item: BatchItemResult) -> None:
        """Progress line for one batch item."""
        if item.success:
            label = item.issue_identifier or "dry run"
            self.item(f"[{item.line_number}] {item.input} {Symbols.ARROW} {label}", "ok")
        else:
            self.item(f"[{item.line_number}] {item.input}: {item.error}", "fail")

    def batch_result(self, result: BatchResult) -> None:
        """Print a batch summary."""
        if self.json_mode:
            self.json(result.to_dict())
            return

        self.section("Batch Complete")
        self.table(
            ["Total", "Succeeded", "Failed"],
            [[str(result.total), str(result.succeeded), str(result.failed)]],
        )
        self.print()
        if result.failed:
            self.error(f"{result.failed} of {result.total} item(s) failed")
        else:
            self.success(f"All {result.total} item(s) succeeded")

    def templates(self, templates: list[AgentTemplate]) -> None:
        if self.json_mode:
            self.json([template.to_dict() for template in templates])
            return
        rows = [
            [
                template.name,
                template.pattern,
                Priority.label_for(template.priority) if template.priority is not None else "",
                template.description or "",
            ]
            for template in templates
        ]
        self.table(["Name", "Pattern", "Priority", "Description"], rows)

    def snapshot(self, snapshot: WorkspaceSnapshot) -> None:
        """Print workspace context."""
        if self.json_mode:
            self.json(
                {
                    "user": {"id": snapshot.user.id, "name": snapshot.user.name},
                    "teams": [{"key": t.key, "name": t.name} for t in snapshot.teams],
                    "projects": [p.name for p in snapshot.projects],
                    "labels": [label.name for label in snapshot.labels],
                    "states": [s.name for s in snapshot.states],
                    "recent_issues": [i.title for i in snapshot.recent_issues],
                }
            )
            return

        self.field("User", snapshot.user.name or snapshot.user.email or snapshot.user.id)
        self.section(f"Teams ({len(snapshot.teams)})")
        for team in snapshot.teams:
            self.item(f"{team.key}: {team.name}")
        self.section(f"Projects ({len(snapshot.projects)})")
        for project in snapshot.projects:
            self.item(project.name)
        self.section(f"Labels ({len(snapshot.labels)})")
        self.detail(", ".join(label.name for label in snapshot.labels))
        self.section(f"Recent issues ({len(snapshot.recent_issues)})")
        for issue in snapshot.recent_issues:
            self.item(f"{issue.title} ({issue.team_key})")
