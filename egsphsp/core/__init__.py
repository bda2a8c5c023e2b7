"""Core module: Header and record codecs."""

from egsphsp.core.header import Header
from egsphsp.core.layout import Layout, MODE0, MODE2, layout_for_mode
from egsphsp.core.record import Record

__all__ = ["Header", "Layout", "MODE0", "MODE2", "layout_for_mode", "Record"]
