"""Host interfaces and the KiCad-file host."""

from .base import HostHandle
from .files import BoardFileHost, ChangeRecord, SchematicFileHost, open_design

__all__ = ["BoardFileHost", "ChangeRecord", "HostHandle", "SchematicFileHost", "open_design"]
