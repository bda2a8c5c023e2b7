"""
Sequential writer for phase space files.

The header is written as soon as the writer is created and fixes the record
layout for the lifetime of the stream. Nothing is guaranteed to be on disk
until the writer is closed.
"""

import logging
import os
from typing import BinaryIO, Iterable, Sequence

import numpy as np

from egsphsp.core.header import Header
from egsphsp.core.record import Record, encode_records
from egsphsp.io.reader import BUFFER_CAPACITY, PathLike

logger = logging.getLogger(__name__)


class PHSPWriter:
    """
    Sink that emits a header followed by records.

    Example:
        with PHSPWriter.create('out.egsphsp1', reader.header) as writer:
            for record in reader:
                writer.write(record)
    """

    def __init__(self, stream: BinaryIO, header: Header):
        """
        Write `header` to `stream` immediately.

        Parameters:
            stream: Binary stream positioned at the start of the file
            header: Header to write; copied, later changes are not seen
        """
        self._stream = stream
        self._owns_stream = False
        self.header = header.copy()
        self.layout = self.header.layout
        self.records_written = 0
        self._stream.write(self.header.to_bytes())

    @classmethod
    def create(cls, path: PathLike, header: Header,
               buffer_size: int = BUFFER_CAPACITY) -> "PHSPWriter":
        """Create (or truncate) a file; the writer owns and closes it."""
        stream = open(path, 'wb', buffering=buffer_size)
        try:
            writer = cls(stream, header)
        except BaseException:
            stream.close()
            raise
        writer._owns_stream = True
        return writer

    def write(self, record: Record):
        """Append one record."""
        self._stream.write(record.to_bytes(self.layout))
        self.records_written += 1

    def write_records(self, records: Iterable[Record]):
        for record in records:
            self.write(record)

    def write_array(self, records: np.ndarray):
        """Append a chunk of records held in a structured array."""
        self._stream.write(encode_records(records, self.layout))
        self.records_written += len(records)

    def flush(self):
        """Push buffered records down to the operating system."""
        self._stream.flush()

    def close(self):
        if self._owns_stream:
            self._stream.close()
        else:
            self.flush()

    def __enter__(self) -> "PHSPWriter":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def rewrite_header(path: PathLike, header: Header):
    """
    Overwrite the header slot of an existing file in place.

    The record layout must not change, only the header fields.
    """
    with open(path, 'r+b') as stream:
        current = Header.read(stream)
        if current.record_size != header.record_size:
            raise ValueError(f"Cannot replace a {current.mode!r} header with "
                             f"a {header.mode!r} header in place")
        stream.seek(0)
        stream.write(header.to_bytes())
    logger.debug(f"Rewrote header of {path}: {header}")


def check_output_not_input(input_paths: Sequence[PathLike],
                           output_path: PathLike):
    """
    Refuse to write over one of the files about to be read.

    Creating the output truncates it, so an output that is also an input
    would be emptied before its records are read.

    Raises:
        ValueError: output_path is the same file as one of input_paths
    """
    if not os.path.exists(output_path):
        return
    for path in input_paths:
        if os.path.exists(path) and os.path.samefile(path, output_path):
            raise ValueError(f"Output {output_path} is also an input")
