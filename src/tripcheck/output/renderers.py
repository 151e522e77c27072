"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from tripcheck.output.console import create_console, get_output, style_for_step

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from tripcheck.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        code = result.error.code if result.error else "ERROR"
        return f"FAIL: {result.op} ({code}, {len(result.findings)} path(s))"

    transactions = result.data.get("transactions")
    if isinstance(transactions, list):
        return "\n".join(str(t) for t in transactions)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="tc.ok")
    op = Text(f"  {result.op}", style="tc.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="tc.key")
    if key.endswith("_id"):
        v = Text(str(value), style="tc.id")
    elif key == "step":
        v = Text(str(value), style=style_for_step(str(value)))
    elif isinstance(value, (list, dict)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += f"  ({', '.join(f'{k}={v}' for k, v in annotations.items())})"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def findings_table(findings: dict[str, list[str]]) -> Table:
    """Build a Rich Table with one row per finding, grouped by path."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Path", style="tc.path", no_wrap=True)
    table.add_column("Message")
    for path, messages in findings.items():
        for i, message in enumerate(messages):
            table.add_row(path if i == 0 else "", message)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="tc.error")
    op = Text(f"  {result.op}", style="tc.op")
    sep = Text(" - ")
    console.print(label, op, sep, msg, end="")
    console.print()

    findings = result.findings
    if findings:
        console.print()
        console.print(findings_table(findings))
    elif verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")

    if verbose:
        _render_meta(console, result)


# ── Operation renderers ───────────────────────────────────────────────


def _render_validation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a passing step validation."""
    _status_line(console, result)
    for key in ("transaction_id", "version", "fulfillment_ids"):
        if result.data.get(key) is not None:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_record(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("transaction_id", "step", "fields"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_state_show(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a transaction's recorded state as a step/field table."""
    _status_line(console, result)
    _field(console, "transaction_id", result.data.get("transaction_id", ""))
    console.print()

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Step", no_wrap=True)
    table.add_column("Field", style="tc.key", no_wrap=True)
    table.add_column("Value")
    for step, fields in result.data.get("steps", {}).items():
        for name, value in fields.items():
            rendered = json.dumps(value, separators=(",", ":"), sort_keys=True)
            if not verbose and len(rendered) > 80:
                rendered = rendered[:77] + "..."
            table.add_row(Text(step, style=style_for_step(step)), name, rendered)
    console.print(table)


def _render_state_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    transactions = result.data.get("transactions", [])
    if not transactions:
        console.print("  No transactions recorded.")
        return
    for txn in transactions:
        console.print(Text(f"  {txn}", style="tc.id"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line plus indented key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "on_select": _render_validation,
    "record": _render_record,
    "state_show": _render_state_show,
    "state_list": _render_state_list,
}
