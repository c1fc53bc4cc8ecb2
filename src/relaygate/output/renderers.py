"""Rich renderers for ServiceResult, chosen by ``result.op``.

A successful result renders as a status line, a block of ``key: value``
fields, and for list-shaped data a table. ``--verbose`` appends the meta
block, with telemetry drawn as a span tree. Ops with no body registered
in ``_BODIES`` dump their ``data`` as fields.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from rich.padding import Padding
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from relaygate.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from relaygate.services.result import ServiceResult

_PUBKEY_KEYS = frozenset({"public_key", "npub", "master_npub"})
_SECRET_KEYS = frozenset({"private_key", "nsec", "mnemonic"})


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string."""
    console = create_console()
    if not result.ok:
        _render_error(result, console, verbose=verbose)
        return get_output(console).rstrip("\n")

    console.print(Text.assemble(("OK", "rg.ok"), (f"  {result.op}", "rg.op")))
    body = _BODIES.get(result.op, _generic_body)
    body(result.data, console)
    if verbose and result.meta:
        _render_meta(console, result.meta)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One word or one key per line, for ``--quiet``."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item.get("public_key", "")) for item in items)
    if "allow" in result.data:
        return "allow" if result.data["allow"] else "deny"
    if "belongs" in result.data:
        return str(result.data["belongs"]).lower()
    return f"OK: {result.op}"


# ── Building blocks ───────────────────────────────────────────────────


def _field_style(key: str) -> str:
    if key in _PUBKEY_KEYS:
        return "rg.pubkey"
    if key in _SECRET_KEYS:
        return "rg.secret"
    if key == "path":
        return "rg.path"
    return ""


def _fields(
    console: Console, data: Mapping[str, Any], keys: Iterable[str], *, skip_empty: bool = False
) -> None:
    for key in keys:
        if key not in data:
            continue
        value = data[key]
        if skip_empty and value in (None, ""):
            continue
        console.print(Text.assemble((f"  {key}: ", "rg.key"), (str(value), _field_style(key))))


def _verdict(console: Console, positive: bool, yes: str, no: str) -> None:
    console.print(Text(f"  {yes if positive else no}", style="rg.allow" if positive else "rg.deny"))


def _span_label(span: Mapping[str, Any]) -> Text:
    duration = span.get("duration_ms", 0.0)
    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"
    label = Text.assemble((f"{duration:.2f}ms", style), f"  {span.get('name', '?')}")
    notes = span.get("annotations") or {}
    if notes:
        label.append("  (" + ", ".join(f"{k}={v}" for k, v in notes.items()) + ")")
    return label


def _span_tree(span: Mapping[str, Any], parent: Tree | None = None) -> Tree:
    node = Tree(_span_label(span)) if parent is None else parent.add(_span_label(span))
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


def _render_meta(console: Console, meta: Mapping[str, Any]) -> None:
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in meta.items():
        if key == "telemetry":
            console.print(Padding(_span_tree(value), (0, 0, 0, 4)))
        else:
            console.print(Text(f"    {key}: {value}"))


def _render_error(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    err = result.error
    console.print(
        Text.assemble(
            ("ERROR", "rg.error"),
            (f"  {result.op}", "rg.op"),
            " — ",
            err.message if err else "Unknown error",
        )
    )
    if err is None:
        return
    console.print(Text(f"  code: {err.code}", style="dim"))
    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}"))


# ── Bodies, one per op ────────────────────────────────────────────────


def _identity_body(data: Mapping[str, Any], console: Console) -> None:
    _fields(console, data, ("index", "path", "public_key", "npub", "private_key", "nsec"))


def _identity_table_body(data: Mapping[str, Any], console: Console) -> None:
    _fields(console, data, ("mnemonic", "master_npub", "start", "count"))
    items: list[dict[str, Any]] = data.get("items") or []
    if not items:
        return
    columns = ["index", "public_key", "npub"]
    if any("nsec" in item for item in items):
        columns.append("nsec")
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Index", justify="right")
    table.add_column("Public (hex)", style="rg.pubkey", no_wrap=True)
    table.add_column("npub", no_wrap=True)
    if "nsec" in columns:
        table.add_column("nsec", style="rg.secret", no_wrap=True)
    for item in items:
        table.add_row(*(str(item.get(col, "")) for col in columns))
    console.print()
    console.print(table)


def _membership_body(data: Mapping[str, Any], console: Console) -> None:
    _verdict(console, bool(data.get("belongs")), "belongs", "not found")
    _fields(console, data, ("classification", "index", "max_index"), skip_empty=True)


def _decision_body(data: Mapping[str, Any], console: Console) -> None:
    _verdict(console, bool(data.get("allow")), "ALLOW", "DENY")
    _fields(console, data, ("reason", "category", "status", "roster_size"), skip_empty=True)


def _roster_body(data: Mapping[str, Any], console: Console) -> None:
    _fields(console, data, ("team_domain", "fetched_at", "count"))
    names: dict[str, str] = data.get("names") or {}
    if not names:
        return
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Name")
    table.add_column("Public key", style="rg.pubkey", no_wrap=True)
    for name in sorted(names):
        table.add_row(name, names[name])
    console.print()
    console.print(table)


def _generic_body(data: Mapping[str, Any], console: Console) -> None:
    flat = {
        key: json.dumps(value, separators=(",", ":")) if isinstance(value, (dict, list)) else value
        for key, value in data.items()
    }
    _fields(console, flat, flat)


_BODIES: dict[str, Callable[[Mapping[str, Any], Console], None]] = {
    "master_key": _identity_body,
    "derive_keys": _identity_table_body,
    "generate_mnemonic": _identity_table_body,
    "check_key": _membership_body,
    "write_policy": _decision_body,
    "read_policy": _decision_body,
    "upload_policy": _decision_body,
    "roster": _roster_body,
}
