"""
Sequential reader for phase space files.

A reader is a single pass over one stream: it parses the header, then
produces exactly `header.total_particles` records, either one Record at a
time or as buffered NumPy chunks for vectorized work. Only one chunk is held
in memory at a time.
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

import numpy as np

from egsphsp.core.header import Header, readinto_full
from egsphsp.core.record import Record, decode_records, records_from_array
from egsphsp.errors import BadLengthError, TruncatedFileError

logger = logging.getLogger(__name__)

BUFFER_CAPACITY = 1024 * 1024  # 1 MiB

PathLike = Union[str, os.PathLike]


def _stream_size(stream: BinaryIO) -> Optional[int]:
    """Bytes from the current position to the end, None if unknown."""
    try:
        if not stream.seekable():
            return None
        start = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(start)
    except (AttributeError, OSError):
        return None
    return end - start


class PHSPReader:
    """
    Read-once producer of records from a phase space stream.

    Example:
        with PHSPReader.open('beam.egsphsp1') as reader:
            print(reader.header)
            for record in reader:
                ...
    """

    def __init__(self, stream: BinaryIO, buffer_size: int = BUFFER_CAPACITY,
                 strict_length: bool = False, check_length: bool = True,
                 name: Optional[str] = None):
        """
        Parse the header of a stream positioned at the start of a file.

        Parameters:
            stream: Binary stream
            buffer_size: Bytes read per chunk
            strict_length: Raise BadLengthError instead of logging a warning
                           when the file size does not match the header
            check_length: Compare the file size against the header at all
            name: Name used in log messages

        Raises:
            BadModeError: unknown mode tag
            BadLengthError: size mismatch and strict_length is set
            TruncatedFileError: stream shorter than a header
        """
        self._stream = stream
        self._owns_stream = False
        self.name = name or getattr(stream, 'name', '<stream>')
        size = _stream_size(stream) if check_length else None

        self.header = Header.read(stream)
        self.layout = self.header.layout
        self.records_read = 0
        self._records_per_chunk = max(1, buffer_size // self.layout.record_size)

        if size is not None and size != self.header.expected_size:
            if strict_length:
                raise BadLengthError(self.header.expected_size, size)
            logger.warning(f"{self.name}: expected {self.header.expected_size} "
                           f"bytes in file, not {size}")

    @classmethod
    def open(cls, path: PathLike, buffer_size: int = BUFFER_CAPACITY,
             strict_length: bool = False,
             check_length: bool = True) -> "PHSPReader":
        """Open a file for reading; the reader owns and closes it."""
        stream = open(path, 'rb', buffering=buffer_size)
        try:
            reader = cls(stream, buffer_size=buffer_size,
                         strict_length=strict_length,
                         check_length=check_length, name=str(path))
        except BaseException:
            stream.close()
            raise
        reader._owns_stream = True
        logger.debug(f"Opened {path}: {reader.header}")
        return reader

    @property
    def records_remaining(self) -> int:
        return max(0, self.header.total_particles - self.records_read)

    def iter_chunks(self) -> Iterator[np.ndarray]:
        """
        Yield the remaining records as writable structured arrays.

        Raises:
            TruncatedFileError: stream ended before all records were read
        """
        record_size = self.layout.record_size
        while self.records_remaining > 0:
            count = min(self._records_per_chunk, self.records_remaining)
            buffer = bytearray(count * record_size)
            n_bytes = readinto_full(self._stream, buffer)
            complete = n_bytes // record_size
            if complete < count:
                if complete:
                    self.records_read += complete
                    yield decode_records(buffer[:complete * record_size],
                                         self.layout)
                raise TruncatedFileError(
                    f"{self.name}: unexpected end of file at record "
                    f"{self.records_read} of {self.header.total_particles}")
            self.records_read += count
            yield decode_records(buffer, self.layout)

    def __iter__(self) -> Iterator[Record]:
        for chunk in self.iter_chunks():
            yield from records_from_array(chunk)

    def close(self):
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "PHSPReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self) -> str:
        return (f"PHSPReader({self.name}, {self.header}, "
                f"read={self.records_read})")


def read_header(path: PathLike, strict_length: bool = False) -> Header:
    """Read only the header of a file, checking its length."""
    with PHSPReader.open(path, strict_length=strict_length) as reader:
        return reader.header
