"""
Compare two phase space files record by record.
"""

import logging
from itertools import zip_longest

from egsphsp.errors import HeaderMismatchError, RecordMismatchError
from egsphsp.io.reader import PathLike, PHSPReader

logger = logging.getLogger(__name__)


def compare_files(path_a: PathLike, path_b: PathLike,
                  tolerance: float = 0.01) -> int:
    """
    Check that two files hold similar headers and records.

    Parameters:
        path_a, path_b: Phase space files
        tolerance: Absolute tolerance for record floats

    Returns:
        Number of records compared

    Raises:
        HeaderMismatchError: headers are not similar
        RecordMismatchError: a record pair differs, or one file has more
                             records than the other
    """
    with PHSPReader.open(path_a) as reader_a, \
            PHSPReader.open(path_b) as reader_b:
        if not reader_a.header.similar_to(reader_b.header):
            raise HeaderMismatchError(
                f"Headers are different: {reader_a.header} vs "
                f"{reader_b.header}")

        compared = 0
        for index, (a, b) in enumerate(zip_longest(reader_a, reader_b)):
            if a is None or b is None:
                raise RecordMismatchError(index, "Files have a different "
                                                 "number of records")
            if not a.similar_to(b, tolerance):
                raise RecordMismatchError(index)
            compared += 1

    logger.info(f"{path_a} and {path_b} match ({compared} records)")
    return compared
