"""
mosaic_windows.cli
------------------

Helpers behind the Click commands: the terminal close prompt, controller
wiring and output formatting.
"""

from __future__ import annotations

from typing import Optional, Sequence

import click

from .browser import ChromeWindows
from .constants import CloseAnswer
from .controller import MosaicController
from .display import ScreenDisplay
from .geometry import Placement
from .options import MosaicOptions
from .state import GroupEntry, JsonBackupStore, group_label


class ClickPrompt:
    """:class:`~mosaic_windows.backends.ClosePrompt` asking on the terminal."""

    def confirm(
        self,
        message: str,
        title: str,
        options: Sequence[CloseAnswer],
        default: CloseAnswer,
    ) -> CloseAnswer:
        click.echo(click.style(title, bold=True), err=True)
        raw = click.prompt(
            message,
            type=click.Choice([o.value for o in options], case_sensitive=False),
            default=default.value,
            show_choices=True,
            err=True,
        )
        return CloseAnswer(raw.lower())


def build_controller(
    options: Optional[MosaicOptions] = None, interactive: bool = True
) -> MosaicController:
    """
    Wire the Chrome backend, the screen display and the JSON backup.

    Inside a Click command the CDP connection is closed with the command's
    context.
    """
    display = ScreenDisplay()
    windows = ChromeWindows(frame_height=display.frame_height())
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.call_on_close(windows.close)
    return MosaicController(
        windows,
        display,
        store=JsonBackupStore(),
        prompt=ClickPrompt() if interactive else None,
        options=options,
    )


def format_groups(groups: Sequence[GroupEntry]) -> str:
    """Table of groups and their windows."""
    header = f"{'Group':20}  {'Monitor':7}  Handle"
    lines = [header, "-" * len(header)]
    for entry in groups:
        name = group_label(entry.group) or "(ungrouped)"
        if isinstance(entry.group, int):
            name = f"#{name}"
        for member in entry.members:
            lines.append(f"{name:20}  {member.monitor or '-':>7}  {member.handle}")
    return "\n".join(lines)


def format_placements(placements: Sequence[Placement]) -> str:
    """Table of simulated window rectangles."""
    header = f"{'Window':36}  {'Monitor':7}  {'X':>6}  {'Y':>6}  {'Width':>6}  {'Height':>6}"
    lines = [header, "-" * len(header)]
    for p in placements:
        r = p.rect
        lines.append(
            f"{str(p.handle):36}  {p.monitor:>7}  {r.x:>6}  {r.y:>6}  {r.width:>6}  {r.height:>6}"
        )
    return "\n".join(lines)
