"""
Record layouts of the two EGSnrc phase space modes.

MODE0 records are 28 bytes wide, MODE2 records carry one extra float
(ZLAST, the z position of the last interaction) and are 32 bytes wide.
The header occupies one record-sized slot at the start of the file.
"""

import struct
from typing import NamedTuple

import numpy as np

from egsphsp.errors import BadModeError


MODE_LENGTH = 5
HEADER_LENGTH = 25

# Latch bits (counted from the least significant bit)
BREMSSTRAHLUNG_OR_ANNIHILATION_BIT = 1
BIT_REGION_MASK = 0xfffffe
REGION_NUMBER_MASK = 0xf000000
B29_BIT = 1 << 29
CHARGED_BIT = 1 << 30

# Little endian, packed: 28 bytes per record
RECORD_DTYPE_MODE0 = np.dtype([
    ('latch', '<u4'),
    ('total_energy', '<f4'),    # MeV, negative if first scored by primary
    ('x_cm', '<f4'),
    ('y_cm', '<f4'),
    ('x_cos', '<f4'),
    ('y_cos', '<f4'),
    ('weight', '<f4'),          # sign carries the sign of z_cos
])

# Same as MODE0 plus ZLAST: 32 bytes per record
RECORD_DTYPE_MODE2 = np.dtype(RECORD_DTYPE_MODE0.descr + [('zlast', '<f4')])


class Layout(NamedTuple):
    """Byte layout selected once per stream from the header mode tag."""

    mode: bytes
    record_size: int
    using_zlast: bool
    dtype: np.dtype
    record_struct: struct.Struct


MODE0 = Layout(b"MODE0", 28, False, RECORD_DTYPE_MODE0, struct.Struct('<I6f'))
MODE2 = Layout(b"MODE2", 32, True, RECORD_DTYPE_MODE2, struct.Struct('<I7f'))

LAYOUTS = {layout.mode: layout for layout in (MODE0, MODE2)}


def layout_for_mode(mode: bytes) -> Layout:
    """
    Get the record layout for a 5-byte mode tag.

    Raises:
        BadModeError: mode is neither MODE0 nor MODE2
    """
    try:
        return LAYOUTS[bytes(mode)]
    except KeyError:
        raise BadModeError(bytes(mode)) from None
