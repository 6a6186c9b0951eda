"""Board edits. Track geometry is delegated to the host."""

from __future__ import annotations

from ..commands.actions import AddTrace, format_number
from ..constants import ADD_TRACK_LABEL
from ..host.base import HostHandle
from ..schema.results import CommandResult


def add_trace(host: HostHandle, action: AddTrace) -> CommandResult:
    assert host.board is not None
    track = host.board.add_track(action.start, action.end, action.width)
    track.mark_new()

    commit = host.new_commit()
    commit.added(track)
    commit.push(ADD_TRACK_LABEL)
    host.canvas.refresh()

    message = (
        f"Added trace from ({action.start.x}, {action.start.y}) "
        f"to ({action.end.x}, {action.end.y})"
    )
    if action.width is not None:
        message += f" with width {format_number(action.width)}"
    return CommandResult.ok(message)
