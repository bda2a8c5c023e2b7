"""Record codec, flag and transform tests."""

import math
import struct

import numpy as np
import pytest

from egsphsp.core.layout import MODE0, MODE2, RECORD_DTYPE_MODE0
from egsphsp.core.record import (Record, decode_records, encode_records,
                                 records_from_array, records_to_array)
from egsphsp.operations.transform import rotation_matrix

from conftest import ELECTRON, PHOTON, pack_record


def test_dtype_sizes():
    assert MODE0.dtype.itemsize == 28
    assert MODE2.dtype.itemsize == 32
    assert MODE0.record_struct.size == 28
    assert MODE2.record_struct.size == 32


@pytest.mark.parametrize("raw", [ELECTRON, PHOTON])
def test_round_trip_mode0(raw):
    data = pack_record(raw)
    assert Record.from_bytes(data, MODE0).to_bytes(MODE0) == data


def test_round_trip_mode2_keeps_zlast():
    """The trailing field is written from zlast, not from the weight."""
    data = pack_record(PHOTON + (87.5,), b"MODE2")
    record = Record.from_bytes(data, MODE2)
    assert record.zlast == 87.5
    assert record.to_bytes(MODE2) == data


def test_round_trip_negative_zero():
    """-0.0 energy still carries the first-scored flag."""
    data = struct.pack('<I6f', 0, -0.0, 0.0, 0.0, 0.0, 0.0, -0.0)
    record = Record.from_bytes(data, MODE0)
    assert record.first_scored_by_primary_history
    assert not record.z_positive
    assert record.to_bytes(MODE0) == data


def test_signs_are_split_from_magnitudes():
    record = Record.from_bytes(pack_record(PHOTON), MODE0)
    assert record.energy == 0.75
    assert record.total_energy == 0.75
    assert record.first_scored_by_primary_history
    assert record.weight == 2.0
    assert not record.z_positive
    assert record.raw_total_energy == -0.75
    assert record.raw_weight == -2.0

    electron = Record.from_bytes(pack_record(ELECTRON), MODE0)
    assert not electron.first_scored_by_primary_history
    assert electron.z_positive


def test_latch_queries():
    latch = 1 | (1 << 29) | (1 << 30) | 0x3000000 | 0x6
    record = Record(latch, 1.0, 0.0, 0.0, 0.0, 0.0, 1.0)
    assert record.bremsstrahlung_or_annihilation
    assert record.b29
    assert record.charged
    assert record.crossed_multiple
    assert record.bit_region == latch & 0xfffffe
    assert record.region_number == 0x3000000

    plain = Record(0, 1.0, 0.0, 0.0, 0.0, 0.0, 1.0)
    assert not plain.bremsstrahlung_or_annihilation
    assert not plain.b29
    assert not plain.charged
    assert plain.bit_region == 0


def test_z_cos():
    record = Record(0, 1.0, 0.0, 0.0, 0.6, 0.0, 1.0)
    assert record.z_cos == pytest.approx(0.8)
    assert Record(0, 1.0, 0.0, 0.0, 0.0, 0.0, 1.0).z_cos == 1.0


def test_set_weight_keeps_z_sign():
    record = Record.from_bytes(pack_record(PHOTON), MODE0)
    record.set_weight(0.125)
    assert record.weight == 0.125
    assert record.raw_weight == -0.125


def test_mode0_record_in_mode2_layout():
    record = Record.from_bytes(pack_record(ELECTRON), MODE0)
    assert record.zlast is None
    data = record.to_bytes(MODE2)
    assert len(data) == 32
    assert struct.unpack('<f', data[28:])[0] == 0.0


def test_transform_quarter_turn():
    record = Record.from_bytes(pack_record(ELECTRON), MODE0)
    record.transform(rotation_matrix(math.pi / 2))
    assert record.x_cm == pytest.approx(-2.0, abs=1e-6)
    assert record.y_cm == pytest.approx(1.0, abs=1e-6)
    assert record.x_cos == pytest.approx(-0.25, abs=1e-6)
    assert record.y_cos == pytest.approx(0.5, abs=1e-6)
    assert record.energy == 1.5
    assert record.latch == ELECTRON[0]


def test_transform_keeps_unit_direction():
    record = Record.from_bytes(pack_record(PHOTON), MODE0)
    for angle in (0.3, 1.7, -2.4, 5.9):
        record.transform(rotation_matrix(angle))
        norm = record.x_cos**2 + record.y_cos**2 + record.z_cos**2
        assert norm == pytest.approx(1.0, abs=1e-6)


def test_transform_composes():
    first = Record.from_bytes(pack_record(ELECTRON), MODE0)
    second = Record.from_bytes(pack_record(ELECTRON), MODE0)
    first.transform(rotation_matrix(0.4))
    first.transform(rotation_matrix(1.1))
    second.transform(rotation_matrix(1.5))
    assert first.similar_to(second, tolerance=1e-5)


def test_similar_to():
    a = Record.from_bytes(pack_record(ELECTRON), MODE0)
    b = Record.from_bytes(pack_record(ELECTRON), MODE0)
    assert a.similar_to(b)
    b.x_cm += 0.5
    assert not a.similar_to(b)
    b.x_cm -= 1.0
    assert not a.similar_to(b)
    c = Record.from_bytes(pack_record(PHOTON), MODE0)
    assert not a.similar_to(c)


def test_chunk_codec():
    data = pack_record(ELECTRON) + pack_record(PHOTON)
    records = decode_records(bytearray(data), MODE0)
    assert records.dtype == RECORD_DTYPE_MODE0
    assert len(records) == 2
    assert records['latch'][0] == ELECTRON[0]
    assert records['total_energy'][1] == -0.75
    assert encode_records(records, MODE0) == data

    decoded = list(records_from_array(records))
    assert decoded[1].first_scored_by_primary_history
    assert records_to_array(decoded, MODE0).tobytes() == data


def test_encode_mode0_chunk_as_mode2():
    records = decode_records(bytearray(pack_record(ELECTRON)), MODE0)
    data = encode_records(records, MODE2)
    assert len(data) == 32
    assert data[:28] == pack_record(ELECTRON)
    assert np.frombuffer(data, dtype=MODE2.dtype)['zlast'][0] == 0.0
