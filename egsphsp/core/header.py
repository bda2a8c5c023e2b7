"""
Phase space file header.

Header layout (little endian, 25 bytes, zero padded to one record slot):
    bytes  0-4   mode tag (MODE0 or MODE2)
    bytes  5-8   total particles (i32)
    bytes  9-12  total photons (i32)
    bytes 13-16  maximum energy [MeV] (f32)
    bytes 17-20  minimum energy [MeV] (f32)
    bytes 21-24  particles incident from the source (f32)
"""

import struct
from typing import BinaryIO

import numpy as np

from egsphsp.core.layout import HEADER_LENGTH, layout_for_mode
from egsphsp.errors import (ModeMismatchError, ParticleCountOverflowError,
                            TruncatedFileError)


HEADER_STRUCT = struct.Struct('<5siifff')

INT32_MAX = 2**31 - 1


def f32(value: float) -> float:
    """Round a Python float to single precision."""
    return float(np.float32(value))


def approx_eq_ulps(a: float, b: float, ulps: int) -> bool:
    """
    Compare two single precision floats by units in the last place.

    Parameters:
        a, b: Values to compare (rounded to float32)
        ulps: Maximum distance in representable float32 steps

    Returns:
        True if a and b are within `ulps` steps of each other
    """
    values = np.array([a, b], dtype=np.float32)
    if values[0] == values[1]:
        return True
    if np.isnan(values).any():
        return False
    bits = values.view(np.int32).astype(np.int64)
    if (bits[0] < 0) != (bits[1] < 0):
        return False
    return abs(int(bits[0] - bits[1])) <= ulps


def readinto_full(stream: BinaryIO, buffer: bytearray) -> int:
    """
    Fill `buffer` from `stream`, stopping early only at end of file.

    Raw and socket-like streams may return fewer bytes than asked for on a
    single read.

    Returns:
        Number of bytes read
    """
    view = memoryview(buffer)
    filled = 0
    while filled < len(buffer):
        n_bytes = stream.readinto(view[filled:])
        if not n_bytes:
            break
        filled += n_bytes
    return filled


class Header:
    """Header of a phase space file."""

    def __init__(self, mode: bytes, total_particles: int, total_photons: int,
                 min_energy: float, max_energy: float,
                 total_particles_in_source: float):
        """
        Initialize a header.

        Parameters:
            mode: b"MODE0" or b"MODE2"
            total_particles: Number of records in the file
            total_photons: Number of uncharged records
            min_energy: Minimum particle energy [MeV]
            max_energy: Maximum particle energy [MeV]
            total_particles_in_source: Particles emitted by the source

        Raises:
            BadModeError: unknown mode tag
        """
        self.layout = layout_for_mode(mode)
        self.mode = self.layout.mode
        self.total_particles = int(total_particles)
        self.total_photons = int(total_photons)
        self.min_energy = f32(min_energy)
        self.max_energy = f32(max_energy)
        self.total_particles_in_source = f32(total_particles_in_source)

    @classmethod
    def empty(cls, mode: bytes = b"MODE0") -> "Header":
        """Header with zero counts and sentinel energies, for accumulating."""
        return cls(mode, 0, 0, 1000.0, 0.0, 0.0)

    @classmethod
    def from_bytes(cls, buffer: bytes) -> "Header":
        """Decode the first 25 bytes of a file."""
        if len(buffer) < HEADER_LENGTH:
            raise TruncatedFileError(
                f"File is shorter than the {HEADER_LENGTH} byte header")
        (mode, total_particles, total_photons, max_energy, min_energy,
         total_particles_in_source) = HEADER_STRUCT.unpack_from(buffer)
        return cls(mode, total_particles, total_photons, min_energy,
                   max_energy, total_particles_in_source)

    @classmethod
    def read(cls, stream: BinaryIO) -> "Header":
        """
        Read the header from a stream.

        Consumes the whole header slot so the stream is left at the first
        record.
        """
        buffer = bytearray(HEADER_LENGTH)
        header = cls.from_bytes(buffer[:readinto_full(stream, buffer)])
        readinto_full(stream, bytearray(header.record_size - HEADER_LENGTH))
        return header

    def to_bytes(self) -> bytes:
        """Encode the header into exactly `record_size` bytes."""
        packed = HEADER_STRUCT.pack(self.mode, self.total_particles,
                                    self.total_photons, self.max_energy,
                                    self.min_energy,
                                    self.total_particles_in_source)
        return packed.ljust(self.record_size, b"\x00")

    @property
    def record_size(self) -> int:
        return self.layout.record_size

    @property
    def using_zlast(self) -> bool:
        return self.layout.using_zlast

    @property
    def total_charged(self) -> int:
        """Electrons and positrons."""
        return self.total_particles - self.total_photons

    @property
    def expected_size(self) -> int:
        """File size in bytes implied by the particle count."""
        return (self.total_particles + 1) * self.record_size

    def copy(self) -> "Header":
        return Header(self.mode, self.total_particles, self.total_photons,
                      self.min_energy, self.max_energy,
                      self.total_particles_in_source)

    def add_particles(self, count: int):
        """Increase the particle count, refusing to overflow i32."""
        total = self.total_particles + count
        if total > INT32_MAX:
            raise ParticleCountOverflowError()
        self.total_particles = total

    def merge(self, other: "Header"):
        """
        Fold another file's header into this one.

        Counts and source particles add, energies take the extremes.

        Raises:
            ModeMismatchError: modes differ
            ParticleCountOverflowError: particle count exceeds i32
        """
        if self.mode != other.mode:
            raise ModeMismatchError(self.mode, other.mode)
        self.add_particles(other.total_particles)
        self.total_photons += other.total_photons
        self.min_energy = min(self.min_energy, other.min_energy)
        self.max_energy = max(self.max_energy, other.max_energy)
        self.total_particles_in_source = float(
            np.float32(self.total_particles_in_source)
            + np.float32(other.total_particles_in_source))

    def similar_to(self, other: "Header") -> bool:
        """Equal counts and mode, energies within a few float32 ULPs."""
        return (self.mode == other.mode
                and self.total_particles == other.total_particles
                and self.total_photons == other.total_photons
                and approx_eq_ulps(self.max_energy, other.max_energy, 10)
                and approx_eq_ulps(self.min_energy, other.min_energy, 10)
                and approx_eq_ulps(self.total_particles_in_source,
                                   other.total_particles_in_source, 2))

    def to_dict(self) -> dict:
        return {
            'total_particles': self.total_particles,
            'total_photons': self.total_photons,
            'maximum_energy': self.max_energy,
            'minimum_energy': self.min_energy,
            'total_particles_in_source': self.total_particles_in_source,
        }

    def __repr__(self) -> str:
        return (f"Header(mode={self.mode.decode('ascii')}, "
                f"particles={self.total_particles}, "
                f"photons={self.total_photons}, "
                f"E=[{self.min_energy:.4f}, {self.max_energy:.4f}] MeV, "
                f"source={self.total_particles_in_source:.1f})")
