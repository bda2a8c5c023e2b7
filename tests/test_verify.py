"""Record by record comparison."""

import math

import pytest

from egsphsp.errors import HeaderMismatchError, RecordMismatchError
from egsphsp.operations.transform import rotate
from egsphsp.verify import compare_files

from conftest import ELECTRON, PHOTON


def test_identical(scenario_file, make_phsp):
    copy = make_phsp('copy.egsphsp1', [ELECTRON, PHOTON])
    assert compare_files(scenario_file, copy) == 2


def test_full_turn_is_similar(tmp_path, scenario_file):
    output = tmp_path / 'turned.egsphsp1'
    rotate(scenario_file, output, 2 * math.pi)
    assert compare_files(scenario_file, output) == 2


def test_rotated_differs(tmp_path, scenario_file):
    output = tmp_path / 'turned.egsphsp1'
    rotate(scenario_file, output, 0.5)
    with pytest.raises(RecordMismatchError) as excinfo:
        compare_files(scenario_file, output)
    assert excinfo.value.index == 0


def test_second_record_differs(scenario_file, make_phsp):
    moved = (PHOTON[0], PHOTON[1], PHOTON[2] + 1.0) + PHOTON[3:]
    other = make_phsp('other.egsphsp1', [ELECTRON, moved])
    with pytest.raises(RecordMismatchError) as excinfo:
        compare_files(scenario_file, other)
    assert excinfo.value.index == 1


def test_header_differs(scenario_file, make_phsp):
    other = make_phsp('other.egsphsp1', [ELECTRON, PHOTON], source=50.0)
    with pytest.raises(HeaderMismatchError):
        compare_files(scenario_file, other)


def test_tolerance(scenario_file, make_phsp):
    nudged = (ELECTRON[0], ELECTRON[1], ELECTRON[2] + 0.005) + ELECTRON[3:]
    other = make_phsp('other.egsphsp1', [nudged, PHOTON])
    assert compare_files(scenario_file, other) == 2
    with pytest.raises(RecordMismatchError):
        compare_files(scenario_file, other, tolerance=0.001)
