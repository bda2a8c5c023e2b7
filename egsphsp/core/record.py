"""
Phase space particle records.

Two signed floats in every record double as boolean carriers:
    total_energy  negative if the particle was first scored by the primary
                  history
    weight        sign is the sign of the z direction cosine

Past the codec these are exposed as a magnitude plus a flag, the raw signed
values only exist in the encoded bytes. Whole chunks of records are handled
as NumPy structured arrays (see layout.RECORD_DTYPE_MODE0/MODE2).
"""

import math
from typing import Optional, Tuple

import numba
import numpy as np

from egsphsp.core.layout import (B29_BIT, BIT_REGION_MASK,
                                 BREMSSTRAHLUNG_OR_ANNIHILATION_BIT,
                                 CHARGED_BIT, REGION_NUMBER_MASK, Layout)


def _split_sign(value: float) -> Tuple[float, bool]:
    """Split a signed float into (magnitude, is_negative), -0.0 included."""
    return abs(value), math.copysign(1.0, value) < 0.0


def _join_sign(magnitude: float, negative: bool) -> float:
    return math.copysign(magnitude, -1.0 if negative else 1.0)


class Record:
    """Single particle crossing the scoring plane."""

    __slots__ = ('latch', 'energy', 'first_scored_by_primary_history',
                 'x_cm', 'y_cm', 'x_cos', 'y_cos', 'weight', 'z_positive',
                 'zlast')

    def __init__(self, latch: int, energy: float, x_cm: float, y_cm: float,
                 x_cos: float, y_cos: float, weight: float,
                 first_scored_by_primary_history: bool = False,
                 z_positive: bool = True, zlast: Optional[float] = None):
        """
        Initialize a record from decoded values.

        Parameters:
            latch: 32-bit flag / region word
            energy: Total energy magnitude [MeV]
            x_cm, y_cm: Position in the scoring plane [cm]
            x_cos, y_cos: Direction cosines
            weight: Statistical weight magnitude
            first_scored_by_primary_history: Stored as the energy sign
            z_positive: Sign of the z direction cosine, stored as weight sign
            zlast: Z of the last interaction (MODE2 only)
        """
        self.latch = int(latch)
        self.energy = abs(energy)
        self.first_scored_by_primary_history = first_scored_by_primary_history
        self.x_cm = x_cm
        self.y_cm = y_cm
        self.x_cos = x_cos
        self.y_cos = y_cos
        self.weight = abs(weight)
        self.z_positive = z_positive
        self.zlast = zlast

    # ------------------------------------------------------------------
    # Codec
    # ------------------------------------------------------------------

    @classmethod
    def from_raw(cls, latch: int, total_energy: float, x_cm: float,
                 y_cm: float, x_cos: float, y_cos: float, weight: float,
                 zlast: Optional[float] = None) -> "Record":
        """Build a record from the signed values as stored on disk."""
        energy, first_scored = _split_sign(total_energy)
        weight_magnitude, z_negative = _split_sign(weight)
        return cls(latch, energy, x_cm, y_cm, x_cos, y_cos, weight_magnitude,
                   first_scored_by_primary_history=first_scored,
                   z_positive=not z_negative, zlast=zlast)

    @classmethod
    def from_bytes(cls, buffer: bytes, layout: Layout) -> "Record":
        """Decode exactly `layout.record_size` bytes."""
        return cls.from_raw(*layout.record_struct.unpack(buffer))

    def to_raw(self, layout: Layout) -> tuple:
        """Signed on-disk values in field order for `layout`."""
        raw = (self.latch, self.raw_total_energy, self.x_cm, self.y_cm,
               self.x_cos, self.y_cos, self.raw_weight)
        if layout.using_zlast:
            raw += (self.zlast if self.zlast is not None else 0.0,)
        return raw

    def to_bytes(self, layout: Layout) -> bytes:
        """Encode into exactly `layout.record_size` bytes."""
        return layout.record_struct.pack(*self.to_raw(layout))

    @property
    def raw_total_energy(self) -> float:
        return _join_sign(self.energy, self.first_scored_by_primary_history)

    @property
    def raw_weight(self) -> float:
        return _join_sign(self.weight, not self.z_positive)

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------

    @property
    def total_energy(self) -> float:
        return self.energy

    @property
    def z_cos(self) -> float:
        """Z direction cosine magnitude, from x_cos² + y_cos² + z_cos² = 1."""
        return math.sqrt(max(0.0, 1.0 - (self.x_cos * self.x_cos +
                                         self.y_cos * self.y_cos)))

    @property
    def radius(self) -> float:
        return math.hypot(self.x_cm, self.y_cm)

    @property
    def bremsstrahlung_or_annihilation(self) -> bool:
        return bool(self.latch & BREMSSTRAHLUNG_OR_ANNIHILATION_BIT)

    @property
    def bit_region(self) -> int:
        return self.latch & BIT_REGION_MASK

    @property
    def region_number(self) -> int:
        return self.latch & REGION_NUMBER_MASK

    @property
    def b29(self) -> bool:
        return bool(self.latch & B29_BIT)

    @property
    def charged(self) -> bool:
        return bool(self.latch & CHARGED_BIT)

    @property
    def crossed_multiple(self) -> bool:
        # Same bit as `charged`, read under a different question
        return bool(self.latch & CHARGED_BIT)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_weight(self, new_weight: float):
        """Replace the weight magnitude, keeping the z direction sign."""
        self.weight = abs(new_weight)

    def transform(self, matrix: np.ndarray):
        """
        Apply a 3x3 transformation matrix (see transform_arrays).

        Modifies the record in-place.
        """
        x_cm = np.array([self.x_cm], dtype=np.float32)
        y_cm = np.array([self.y_cm], dtype=np.float32)
        x_cos = np.array([self.x_cos], dtype=np.float32)
        y_cos = np.array([self.y_cos], dtype=np.float32)
        transform_arrays(x_cm, y_cm, x_cos, y_cos,
                         np.asarray(matrix, dtype=np.float32))
        self.x_cm = float(x_cm[0])
        self.y_cm = float(y_cm[0])
        self.x_cos = float(x_cos[0])
        self.y_cos = float(y_cos[0])

    def similar_to(self, other: "Record", tolerance: float = 0.01) -> bool:
        """Same latch and flags, floats within an absolute tolerance."""
        if self.zlast is None or other.zlast is None:
            zlast_similar = self.zlast is None and other.zlast is None
        else:
            zlast_similar = abs(self.zlast - other.zlast) < tolerance
        return (self.latch == other.latch
                and self.first_scored_by_primary_history
                == other.first_scored_by_primary_history
                and self.z_positive == other.z_positive
                and abs(self.energy - other.energy) < tolerance
                and abs(self.x_cm - other.x_cm) < tolerance
                and abs(self.y_cm - other.y_cm) < tolerance
                and abs(self.x_cos - other.x_cos) < tolerance
                and abs(self.y_cos - other.y_cos) < tolerance
                and abs(self.weight - other.weight) < tolerance
                and zlast_similar)

    def __repr__(self) -> str:
        return (f"Record(latch={self.latch:#010x}, E={self.energy:.4f} MeV, "
                f"pos=({self.x_cm:.3f}, {self.y_cm:.3f}) cm, "
                f"dir=({self.x_cos:.4f}, {self.y_cos:.4f}), "
                f"w={self.weight:.4g})")


# ============================================================================
# Chunk codec
# ============================================================================

def decode_records(buffer, layout: Layout) -> np.ndarray:
    """
    View a buffer of whole records as a structured array.

    The array shares memory with `buffer`; pass a bytearray to get a
    writable array.
    """
    return np.frombuffer(buffer, dtype=layout.dtype)


def encode_records(records: np.ndarray, layout: Layout) -> bytes:
    """Encode a structured array into the byte layout of `layout`."""
    if records.dtype == layout.dtype:
        return records.tobytes()
    converted = np.zeros(len(records), dtype=layout.dtype)
    for name in layout.dtype.names:
        if name in records.dtype.names:
            converted[name] = records[name]
    return converted.tobytes()


def records_from_array(records: np.ndarray):
    """Yield Record objects from a structured array."""
    for raw in records.tolist():
        yield Record.from_raw(*raw)


def records_to_array(records, layout: Layout) -> np.ndarray:
    """Build a structured array from Record objects."""
    return np.array([record.to_raw(layout) for record in records],
                    dtype=layout.dtype)


# ============================================================================
# Numba-accelerated kernels
# ============================================================================

@numba.njit(cache=True)
def transform_arrays(x_cm: np.ndarray, y_cm: np.ndarray, x_cos: np.ndarray,
                     y_cos: np.ndarray, matrix: np.ndarray):
    """
    Transform positions and direction cosines by a 3x3 matrix.

    Position is transformed as (x, y, 1), direction as (u, v, w) with
    w = sqrt(1 - u² - v²) taken before the update, so direction is rotated
    as a unit vector and projected back onto its first two components.

    Parameters:
        x_cm, y_cm: Positions [cm]
        x_cos, y_cos: Direction cosines
        matrix: 3x3 transformation matrix

    Modifies the arrays in-place.
    """
    for i in range(len(x_cm)):
        x = x_cm[i]
        y = y_cm[i]
        x_cm[i] = matrix[0, 0] * x + matrix[0, 1] * y + matrix[0, 2]
        y_cm[i] = matrix[1, 0] * x + matrix[1, 1] * y + matrix[1, 2]

        u = x_cos[i]
        v = y_cos[i]
        w = np.sqrt(max(0.0, 1.0 - (u * u + v * v)))
        x_cos[i] = matrix[0, 0] * u + matrix[0, 1] * v + matrix[0, 2] * w
        y_cos[i] = matrix[1, 0] * u + matrix[1, 1] * v + matrix[1, 2] * w


# ============================================================================
# Example usage
# ============================================================================

if __name__ == "__main__":
    from egsphsp.core.layout import MODE0

    record = Record(latch=1 << 30, energy=1.25, x_cm=3.0, y_cm=0.0,
                    x_cos=0.6, y_cos=0.0, weight=0.5,
                    first_scored_by_primary_history=True)
    encoded = record.to_bytes(MODE0)
    print(f"Encoded {len(encoded)} bytes: {encoded.hex()}")
    print(f"Decoded: {Record.from_bytes(encoded, MODE0)}")
    print(f"  charged={record.charged}, z_cos={record.z_cos:.4f}")
