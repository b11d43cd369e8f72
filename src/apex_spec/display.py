# display.py
# All terminal output for APEX documents, plans and execution state.
#
# Library modules never format strings for humans; they return structures
# and callers hand them to the named functions here.
#
# Colour language:
#   cyan    - documents and pipeline stages
#   blue    - plan steps and tool bindings
#   yellow  - warnings and tolerant-mode fixes
#   green   - success
#   red     - errors and failed steps
#   magenta - semantics (constraints, precedence, complexity)

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from apex_spec.errors import ApexError
from apex_spec.interpreter import ExecutionPlan, ExecutionState, StepStatus
from apex_spec.semantics import Semantics

console = Console()

_STATUS_STYLE = {
    StepStatus.PENDING: "dim",
    StepStatus.RUNNING: "bold cyan",
    StepStatus.COMPLETE: "bold green",
    StepStatus.FAILED: "bold red",
    StepStatus.SKIPPED: "yellow",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def banner(parse_mode: str, validation_mode: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]APEX Planning Pipeline[/bold cyan]\n"
            "[dim]lex → parse → validate → interpret[/dim]\n\n"
            f"[dim]Parse mode      :[/dim] [white]{parse_mode}[/white]\n"
            f"[dim]Validation mode :[/dim] [white]{validation_mode}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def document_received(name: str) -> None:
    console.print()
    console.print(Rule(f"[cyan]{name}[/cyan]", style="cyan"))


def parse_fixes(fixes: list[str]) -> None:
    if not fixes:
        return
    console.print(
        Panel(
            "\n".join(f"[yellow]•[/yellow] {fix}" for fix in fixes),
            title=_label("TOLERANT FIXES", "yellow"),
            border_style="yellow",
            padding=(0, 2),
        )
    )


def warnings(items: list[str]) -> None:
    if not items:
        return
    console.print(
        Panel(
            "\n".join(f"[yellow]![/yellow] {item}" for item in items),
            title=_label("WARNINGS", "yellow"),
            border_style="yellow",
            padding=(0, 2),
        )
    )


def validation_error(error: ApexError) -> None:
    location = f"\n[dim]line {error.line}[/dim]" if error.line is not None else ""
    console.print(
        Panel(
            f"[bold red]{error.kind.value}[/bold red]\n[white]{error.message}[/white]{location}",
            title=_label("REJECTED ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


def plan_built(plan: ExecutionPlan) -> None:
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="blue",
        show_header=True,
        header_style="bold blue",
        padding=(0, 1),
    )
    table.add_column("#", justify="center", width=4)
    table.add_column("Step", style="white")
    table.add_column("Tool", style="bold white", width=18)
    table.add_column("After", justify="center", width=6)

    for step in plan.steps:
        table.add_row(
            str(step.step_number),
            _mono(step.description, 60),
            step.tool.name if step.tool else "[dim]-[/dim]",
            ", ".join(str(n) for n in step.depends_on) or "[dim]-[/dim]",
        )

    console.print(
        Panel(
            table,
            title=_label("EXECUTION PLAN", "blue"),
            subtitle=f"[dim]Task: {_mono(plan.task, 80)}[/dim]",
            border_style="blue",
            padding=(0, 1),
        )
    )

    if plan.goals:
        console.print("[dim]  Goals:[/dim] " + "; ".join(plan.goals))
    if plan.validation:
        console.print("[dim]  Checks:[/dim] " + "; ".join(plan.validation))
    if plan.available_tools:
        console.print("[dim]  Tools:[/dim] " + ", ".join(t.name for t in plan.available_tools))


def semantics_summary(semantics: Semantics) -> None:
    constraints = ", ".join(c.as_str() for c in semantics.constraints) or "none"
    console.print(
        f"  [magenta]Constraints[/magenta]  [white]{constraints}[/white]\n"
        f"  [magenta]Complexity[/magenta]   [white]{semantics.complexity}/5[/white]"
        f"  [magenta]Needs plan[/magenta] [white]{semantics.requires_plan}[/white]"
    )


# ---------------------------------------------------------------------------
# Execution state
# ---------------------------------------------------------------------------


def execution_state(plan: ExecutionPlan, state: ExecutionState) -> None:
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold dim", padding=(0, 1))
    table.add_column("#", justify="center", width=4)
    table.add_column("Status", width=10)
    table.add_column("Result", style="dim white")

    for step, status, result in zip(plan.steps, state.step_states, state.tool_results):
        style = _STATUS_STYLE[status]
        table.add_row(
            str(step.step_number),
            f"[{style}]{status.value}[/{style}]",
            _mono(result or "", 60),
        )

    console.print(
        Panel(
            table,
            title="[dim]EXECUTION STATE[/dim]",
            subtitle=f"[dim]checkpoint={state.checkpoint} paused={state.paused}[/dim]",
            border_style="dim",
            padding=(0, 1),
        )
    )
    if state.error:
        console.print(f"  [bold red]Last error:[/bold red] [white]{state.error}[/white]")
