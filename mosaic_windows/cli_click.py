"""
mosaic_windows.cli_click
------------------------

User-facing Click command-line interface.

Commands
--------
create       : Open a new tiled window
close        : Close a group (or every group)
close-window : Close one window as if the user closed it
layout       : Re-tile a group on the current monitors
list         : Show the managed groups and windows
plan         : Simulate a layout without touching any window
watch        : Keep running and react to windows being closed
"""

from __future__ import annotations

import json
import logging
from importlib import metadata
from typing import Optional

import click
from dotenv import load_dotenv, find_dotenv
from pydantic import ValidationError

from mosaic_windows.cli import (
    build_controller,
    format_groups,
    format_placements,
)
from mosaic_windows.constants import ALL_GROUPS, DealStrategy, LayoutStrategy
from mosaic_windows.controller import InvalidMonitorError, parse_group_arg
from mosaic_windows.display import parse_monitors
from mosaic_windows.geometry import Rect
from mosaic_windows.options import MosaicOptions
from mosaic_windows.state import InvalidGroupError

_LOG = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _options(
    title: Optional[str] = None,
    layout_strategy: Optional[int] = None,
    deal_strategy: Optional[int] = None,
) -> MosaicOptions:
    try:
        return MosaicOptions().merged(
            title=title, layout_strategy=layout_strategy, deal_strategy=deal_strategy
        )
    except ValidationError as exc:
        raise click.BadParameter(str(exc)) from exc


def _monitor_arg(ctx, param, values) -> Optional[list[Rect]]:
    if not values:
        return None
    try:
        return [m for raw in values for m in parse_monitors(raw)]
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


_layout_option = click.option(
    "--layout-strategy",
    type=click.IntRange(1, len(LayoutStrategy)),
    help="Grid strategy: 1 greedy, 2 rounded, 3 nearest rows, 4 squarest.",
)
_deal_option = click.option(
    "--deal-strategy",
    type=click.IntRange(1, len(DealStrategy)),
    help="Deal strategy: 1 first fit, 2 largest cells, 3 balanced.",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging.")
@click.version_option(metadata.version("mosaic-windows"))
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:  # noqa: D401  (Click demands plain name)
    """mosaic – tile groups of windows over every monitor."""
    _configure_logging(verbose)
    # Best-effort .env loading so $MOSAIC_* settings can live in a file.
    discovered = find_dotenv(usecwd=True)
    if discovered:
        load_dotenv(discovered)
        _LOG.debug("Loaded .env at startup: %s", discovered)
    ctx.ensure_object(dict)


# --------------------------------------------------------------------------- #
# create command                                                              #
# --------------------------------------------------------------------------- #


@cli.command("create")
@click.option(
    "-m",
    "--monitor",
    type=int,
    default=0,
    show_default=True,
    help="Monitor to pin the window to (0: any monitor).",
)
@click.option("-g", "--group", type=str, help="Group name or number.")
@click.option("-t", "--title", type=str, help="Window title.")
@_layout_option
@_deal_option
def cmd_create(
    monitor: int,
    group: Optional[str],
    title: Optional[str],
    layout_strategy: Optional[int],
    deal_strategy: Optional[int],
) -> None:
    """Open a new window and re-tile its group."""
    options = _options(title, layout_strategy, deal_strategy)
    controller = build_controller(options)
    try:
        handle = controller.create(monitor, parse_group_arg(group), options=options)
    except (InvalidGroupError, InvalidMonitorError) as exc:
        raise click.BadParameter(str(exc)) from exc
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(handle)


# --------------------------------------------------------------------------- #
# close / layout commands                                                     #
# --------------------------------------------------------------------------- #


@cli.command("close")
@click.argument("group", required=False, default=ALL_GROUPS)
@click.option("--ungrouped", is_flag=True, help="Close the ungrouped windows only.")
def cmd_close(group: str, ungrouped: bool) -> None:
    """Close GROUP (default: all groups) without asking."""
    controller = build_controller(interactive=False)
    try:
        controller.close(None if ungrouped else group)
    except InvalidGroupError as exc:
        raise click.BadParameter(str(exc)) from exc
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Closed.")


@cli.command("close-window")
@click.argument("handle")
@click.option(
    "--ask/--no-ask",
    default=False,
    show_default=True,
    help="Ask whether to close the whole group (as a user close would).",
)
def cmd_close_window(handle: str, ask: bool) -> None:
    """Close one managed window and re-tile what remains."""
    controller = build_controller(interactive=ask)
    try:
        controller.close_window(handle, ask=ask)
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("layout")
@click.argument("group", required=False)
@_layout_option
@_deal_option
def cmd_layout(
    group: Optional[str],
    layout_strategy: Optional[int],
    deal_strategy: Optional[int],
) -> None:
    """Re-tile GROUP (default: the ungrouped windows)."""
    options = _options(None, layout_strategy, deal_strategy)
    controller = build_controller(options, interactive=False)
    try:
        placed = controller.layout(parse_group_arg(group))
    except InvalidGroupError as exc:
        raise click.BadParameter(str(exc)) from exc
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Laid out {len(placed)} window(s).")


# --------------------------------------------------------------------------- #
# list / plan commands                                                        #
# --------------------------------------------------------------------------- #


@cli.command("list")
@click.option(
    "-o",
    "--output",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format.",
)
def cmd_list(output: str) -> None:
    """List managed groups and windows."""
    controller = build_controller(interactive=False)
    if output == "json":
        click.echo(json.dumps(controller.debug_state(), indent=2))
        return
    groups = [g for g in controller.list_groups() if g.members]
    if not groups:
        click.echo("No mosaic windows.")
        return
    click.echo(format_groups(groups))


@cli.command("plan")
@click.option("-g", "--group", type=str, help="Group whose windows are simulated.")
@click.option(
    "-n", "--count", type=click.IntRange(min=1), help="Simulate COUNT unpinned windows."
)
@click.option(
    "--monitor",
    "monitors",
    multiple=True,
    callback=_monitor_arg,
    help="Monitor as x,y,width,height (repeatable; default: current monitors).",
)
@click.option(
    "-o",
    "--output",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format.",
)
@_layout_option
@_deal_option
def cmd_plan(
    group: Optional[str],
    count: Optional[int],
    monitors: Optional[list[Rect]],
    output: str,
    layout_strategy: Optional[int],
    deal_strategy: Optional[int],
) -> None:
    """Show where windows would go, without moving anything."""
    options = _options(None, layout_strategy, deal_strategy)
    controller = build_controller(options, interactive=False)
    try:
        placements = controller.plan(
            parse_group_arg(group), monitors=monitors, count=count
        )
    except (InvalidGroupError, ValueError) as exc:
        raise click.BadParameter(str(exc)) from exc

    if output == "json":
        payload = [
            {
                "handle": p.handle,
                "monitor": p.monitor,
                "rect": list(p.rect.as_tuple()),
            }
            for p in placements
        ]
        click.echo(json.dumps(payload, indent=2))
        return
    if not placements:
        click.echo("Nothing to lay out.")
        return
    click.echo(format_placements(placements))


# --------------------------------------------------------------------------- #
# watch command                                                               #
# --------------------------------------------------------------------------- #


@cli.command("watch")
def cmd_watch() -> None:
    """Re-tile groups as their windows are closed (Ctrl-C to stop)."""
    controller = build_controller()
    count = controller.attach_close_handlers()
    click.echo(f"Watching {count} window(s)…")
    try:
        controller.watch()
    except KeyboardInterrupt:
        click.echo("Stopped.")
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc
