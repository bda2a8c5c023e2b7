"""
Shared fixtures: small phase space files packed by hand with struct, so the
codec under test is not used to build its own inputs.
"""

import struct

import pytest

CHARGED = 1 << 30

# latch, total_energy, x_cm, y_cm, x_cos, y_cos, weight
ELECTRON = (CHARGED, 1.5, 1.0, 2.0, 0.5, 0.25, 0.5)
PHOTON = (0, -0.75, -3.0, 4.0, -0.25, 0.625, -2.0)


def pack_header(mode=b"MODE0", particles=2, photons=1, max_energy=2.0,
                min_energy=0.5, source=100.0):
    record_size = 32 if mode == b"MODE2" else 28
    packed = struct.pack('<5siifff', mode, particles, photons, max_energy,
                         min_energy, source)
    return packed.ljust(record_size, b"\x00")


def pack_record(raw, mode=b"MODE0"):
    if mode == b"MODE2":
        return struct.pack('<I7f', *raw)
    return struct.pack('<I6f', *raw)


@pytest.fixture
def make_phsp(tmp_path):
    """Factory writing a phase space file from raw record tuples."""

    def make(name, records, mode=b"MODE0", photons=None, max_energy=2.0,
             min_energy=0.5, source=100.0, particles=None, trailing=b""):
        if photons is None:
            photons = sum(1 for r in records if not r[0] & CHARGED)
        if particles is None:
            particles = len(records)
        path = tmp_path / name
        data = pack_header(mode, particles, photons, max_energy, min_energy,
                           source)
        data += b"".join(pack_record(r, mode) for r in records)
        path.write_bytes(data + trailing)
        return path

    return make


@pytest.fixture
def scenario_file(make_phsp):
    """MODE0 file: 2 particles, 1 photon, E in [0.5, 2.0], 100 source."""
    return make_phsp('scenario.egsphsp1', [ELECTRON, PHOTON])
