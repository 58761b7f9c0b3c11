"""CLI entrypoint for layergraph."""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import CONFIG_FILENAME, find_config, load_config
from .errors import EditError, SnapshotError
from .workspace import Workspace


def _configure_logging(verbose: bool) -> None:
    root = logging.getLogger("layergraph")
    root.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_path=False, show_time=False)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


def _parse_assignments(pairs: tuple[str, ...]) -> dict[str, Any]:
    """``key=value`` pairs; values are read as JSON when they parse, else as text."""
    out: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--set")
        try:
            out[key] = json.loads(raw)
        except json.JSONDecodeError:
            out[key] = raw
    return out


def _run(fn, *args, **kwargs) -> None:
    """Call a ``run_*`` function and exit with its code."""
    try:
        exit_code = fn(*args, **kwargs)
    except (SnapshotError, EditError) as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


@click.group()
@click.version_option(__version__, prog_name="layergraph")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"Settings file (defaults to ./{CONFIG_FILENAME} when present)",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Directory with nodes_*.json and links.json",
)
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Where saved edits and the edit session live (default .layergraph)",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    data_dir: Path | None,
    state_dir: Path | None,
    verbose: bool,
) -> None:
    """layergraph - layered knowledge graph layout and editing.

    Lays out industry, job, skill and knowledge layers as a force-directed
    graph, renders it to SVG/HTML, and keeps an undoable edit session.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    try:
        config = load_config(config_path) if config_path else find_config(Path.cwd())
    except ValueError as e:
        raise click.ClickException(f"invalid configuration: {e}") from e

    if data_dir is not None and not data_dir.is_dir():
        raise click.BadParameter(f"Directory '{data_dir}' does not exist.", param_hint="--data-dir / -d")

    ctx.obj["workspace"] = Workspace.from_config(config, data_dir=data_dir, state_dir=state_dir)


def _ws(ctx: click.Context) -> Workspace:
    return ctx.obj["workspace"]


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["html", "svg", "json"]),
    default="html",
    show_default=True,
    help="Output format",
)
@click.option("--out", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write to file")
@click.option("--layer", default="all", show_default=True, help="Layer filter: all, or 1-5")
@click.option("--search", default="", help="Show nodes matching the term and their neighbors")
@click.option("--max-ticks", type=int, default=None, help="Stop the layout early")
@click.pass_context
def render(
    ctx: click.Context,
    fmt: str,
    out: Path | None,
    layer: str,
    search: str,
    max_ticks: int | None,
) -> None:
    """Lay out the graph and write it as HTML, SVG or JSON positions.

    Examples:

        layergraph render -o graph.html

        layergraph render --layer 3 --format svg -o skills.svg

        layergraph render --search AARRR --format json
    """
    from .commands.render_cmd import run_render

    _run(run_render, _ws(ctx), fmt=fmt, out=out, layer=layer, search=search, max_ticks=max_ticks)


@cli.command()
@click.option("--out", "-o", type=click.Path(dir_okay=False, path_type=Path), required=True, help="File to keep updated")
@click.option("--format", "fmt", type=click.Choice(["html", "svg", "json"]), default="html", show_default=True)
@click.option("--layer", default="all", show_default=True)
@click.option("--search", default="")
@click.pass_context
def watch(ctx: click.Context, out: Path, fmt: str, layer: str, search: str) -> None:
    """Re-render OUT whenever the data directory or saved edits change.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    try:
        run_watch(_ws(ctx), out, fmt=fmt, layer=layer, search=search)
    except (SnapshotError, ValueError) as e:
        raise click.ClickException(str(e)) from e


# -----------------------------------------------------------------------------
# Data
# -----------------------------------------------------------------------------


@cli.command()
@click.option("--top", type=int, default=10, show_default=True, help="Rows in the degree table")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def stats(ctx: click.Context, top: int, output_json: bool) -> None:
    """Node counts per layer, density and highest-degree nodes."""
    from .commands.data_cmd import run_stats

    _run(run_stats, _ws(ctx), top=top, output_json=output_json)


@cli.command()
@click.option(
    "--dir",
    "directory",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to write the export into",
)
@click.pass_context
def export(ctx: click.Context, directory: Path) -> None:
    """Write knowledge-graph-edited-YYYY-MM-DD.json."""
    from .commands.data_cmd import run_export

    _run(run_export, _ws(ctx), directory)


@cli.command("import")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def import_(ctx: click.Context, path: Path) -> None:
    """Replace the saved graph with an exported file."""
    from .commands.data_cmd import run_import

    _run(run_import, _ws(ctx), path)


@cli.command()
@click.confirmation_option(prompt="Discard all saved edits and return to the source data?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Remove saved edits and any pending edit session."""
    from .commands.data_cmd import run_reset

    _run(run_reset, _ws(ctx))


@cli.command()
@click.option("--dry-run", is_flag=True, help="Only report marker usage")
@click.pass_context
def clean(ctx: click.Context, dry_run: bool) -> None:
    """Strip %@..@% / ##@..@## markers from node text in the edit session."""
    from .commands.data_cmd import run_clean

    _run(run_clean, _ws(ctx), dry_run=dry_run)


# -----------------------------------------------------------------------------
# Edit session
# -----------------------------------------------------------------------------


@cli.group()
def edit() -> None:
    """Edit nodes and links with undo/redo.

    `edit begin` starts a session; changes stay in the session until
    `edit save` or `edit commit` writes them to the saved graph.
    """
    pass


@edit.command("begin")
@click.pass_context
def edit_begin(ctx: click.Context) -> None:
    """Start an edit session on the current graph."""
    from .commands.edit_cmd import run_begin

    _run(run_begin, _ws(ctx))


@edit.command("commit")
@click.pass_context
def edit_commit(ctx: click.Context) -> None:
    """Save the working copy and leave edit mode."""
    from .commands.edit_cmd import run_commit

    _run(run_commit, _ws(ctx))


@edit.command("discard")
@click.pass_context
def edit_discard(ctx: click.Context) -> None:
    """Leave edit mode without saving."""
    from .commands.edit_cmd import run_discard

    _run(run_discard, _ws(ctx))


@edit.command("save")
@click.pass_context
def edit_save(ctx: click.Context) -> None:
    """Save the working copy and keep editing."""
    from .commands.edit_cmd import run_save

    _run(run_save, _ws(ctx))


@edit.command("status")
@click.pass_context
def edit_status(ctx: click.Context) -> None:
    """Show mode, history position and selection."""
    from .commands.edit_cmd import run_status

    _run(run_status, _ws(ctx))


@edit.command("select")
@click.argument("node_ids", nargs=-1, required=True)
@click.pass_context
def edit_select(ctx: click.Context, node_ids: tuple[str, ...]) -> None:
    """Toggle selection of one or more nodes."""
    from .commands.edit_cmd import run_select

    _run(run_select, _ws(ctx), node_ids)


@edit.command("deselect")
@click.pass_context
def edit_deselect(ctx: click.Context) -> None:
    """Clear the selection."""
    from .commands.edit_cmd import run_deselect

    _run(run_deselect, _ws(ctx))


@edit.command("add-node")
@click.option("--layer", type=int, required=True, help="0 origin, 1 industry, 2 job, 3 skill, 4 knowledge, 5 resource")
@click.option("--name", required=True)
@click.option("--id", "node_id", default=None, help="Defaults to the next free <layer>_edit_NNN id")
@click.option("--size", type=float, default=None)
@click.option("--color", default=None)
@click.option("--description", default=None)
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE", help="Extra fields. Repeatable.")
@click.pass_context
def edit_add_node(
    ctx: click.Context,
    layer: int,
    name: str,
    node_id: str | None,
    size: float | None,
    color: str | None,
    description: str | None,
    assignments: tuple[str, ...],
) -> None:
    """Add a node."""
    from .commands.edit_cmd import run_add_node

    fields = _parse_assignments(assignments)
    fields.update({"layer": layer, "name": name})
    for key, value in (("id", node_id), ("size", size), ("color", color), ("description", description)):
        if value is not None:
            fields[key] = value
    _run(run_add_node, _ws(ctx), fields)


@edit.command("update-node")
@click.argument("node_id")
@click.option("--set", "assignments", multiple=True, required=True, metavar="KEY=VALUE", help="Repeatable.")
@click.pass_context
def edit_update_node(ctx: click.Context, node_id: str, assignments: tuple[str, ...]) -> None:
    """Change fields of a node.

    Examples:

        layergraph edit update-node skill_01 --set name="SQL" --set size=14
    """
    from .commands.edit_cmd import run_update_node

    _run(run_update_node, _ws(ctx), node_id, _parse_assignments(assignments))


@edit.command("delete-node")
@click.argument("node_id")
@click.pass_context
def edit_delete_node(ctx: click.Context, node_id: str) -> None:
    """Delete a node and every link touching it."""
    from .commands.edit_cmd import run_delete_node

    _run(run_delete_node, _ws(ctx), node_id)


@edit.command("delete-selected")
@click.pass_context
def edit_delete_selected(ctx: click.Context) -> None:
    """Delete every selected node as one undoable step."""
    from .commands.edit_cmd import run_delete_selected

    _run(run_delete_selected, _ws(ctx))


@edit.command("add-link")
@click.argument("source")
@click.argument("target")
@click.option("--type", "relationship_type", default=None, help="Relationship type (default custom)")
@click.option("--strength", type=float, default=None)
@click.option("--evidence", default=None, help="Evidence text shown in the detail panel")
@click.option("--id", "link_id", default=None, help="Defaults to SOURCE-TARGET")
@click.pass_context
def edit_add_link(
    ctx: click.Context,
    source: str,
    target: str,
    relationship_type: str | None,
    strength: float | None,
    evidence: str | None,
    link_id: str | None,
) -> None:
    """Add a link between two existing nodes."""
    from .commands.edit_cmd import run_add_link

    fields = {
        "source": source,
        "target": target,
        "id": link_id,
        "relationship_type": relationship_type,
        "strength": strength,
        "evidence_detail": evidence,
    }
    _run(run_add_link, _ws(ctx), fields)


@edit.command("update-link")
@click.argument("link_id")
@click.option("--set", "assignments", multiple=True, required=True, metavar="KEY=VALUE", help="Repeatable.")
@click.pass_context
def edit_update_link(ctx: click.Context, link_id: str, assignments: tuple[str, ...]) -> None:
    """Change fields of a link."""
    from .commands.edit_cmd import run_update_link

    _run(run_update_link, _ws(ctx), link_id, _parse_assignments(assignments))


@edit.command("delete-link")
@click.argument("link_id")
@click.pass_context
def edit_delete_link(ctx: click.Context, link_id: str) -> None:
    """Delete a link."""
    from .commands.edit_cmd import run_delete_link

    _run(run_delete_link, _ws(ctx), link_id)


@edit.command("undo")
@click.pass_context
def edit_undo(ctx: click.Context) -> None:
    """Step back one edit."""
    from .commands.edit_cmd import run_undo

    _run(run_undo, _ws(ctx))


@edit.command("redo")
@click.pass_context
def edit_redo(ctx: click.Context) -> None:
    """Step forward one edit."""
    from .commands.edit_cmd import run_redo

    _run(run_redo, _ws(ctx))


@edit.command("restore")
@click.pass_context
def edit_restore(ctx: click.Context) -> None:
    """Return the working copy to the last saved state."""
    from .commands.edit_cmd import run_restore

    _run(run_restore, _ws(ctx))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
