"""
egsphsp: EGSnrc phase space files

Read, write and transform the binary phase space files written by EGSnrc
(BEAMnrc) at a scoring plane.

Modules:
    core: Header and record codecs, record layouts
    io: Buffered sequential reader and writer
    operations: Rotation, combining and subsampling of files
    verify: Record by record comparison of files
    config: YAML configuration and logging setup
    cli: Command line interface
"""

__version__ = "0.1.0"

from egsphsp.core.header import Header
from egsphsp.core.record import Record
from egsphsp.io.reader import PHSPReader, read_header
from egsphsp.io.writer import PHSPWriter
from egsphsp.operations.transform import transform, rotate, rotation_matrix
from egsphsp.operations.combine import combine
from egsphsp.operations.sample import sample
from egsphsp.errors import (EGSError, BadModeError, BadLengthError,
                            ModeMismatchError, HeaderMismatchError,
                            RecordMismatchError, TruncatedFileError,
                            ParticleCountOverflowError)

__all__ = [
    "Header",
    "Record",
    "PHSPReader",
    "PHSPWriter",
    "read_header",
    "transform",
    "rotate",
    "rotation_matrix",
    "combine",
    "sample",
    "EGSError",
    "BadModeError",
    "BadLengthError",
    "ModeMismatchError",
    "HeaderMismatchError",
    "RecordMismatchError",
    "TruncatedFileError",
    "ParticleCountOverflowError",
]
