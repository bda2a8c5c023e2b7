"""
Combine several phase space files into one.

The headers are merged first (counts add, energies take the extremes), then
the records of every input are copied in input order. Optionally each input
is deleted as soon as it has been copied; there is no rollback if a later
input fails.
"""

import logging
import os
import time
from typing import Sequence

from egsphsp.core.header import Header
from egsphsp.io.reader import BUFFER_CAPACITY, PathLike, PHSPReader
from egsphsp.io.writer import PHSPWriter, check_output_not_input

logger = logging.getLogger(__name__)


def merge_headers(input_paths: Sequence[PathLike],
                  strict_length: bool = False) -> Header:
    """
    Peek at every input header and merge them.

    Raises:
        ModeMismatchError: inputs mix MODE0 and MODE2
    """
    merged = None
    for path in input_paths:
        with PHSPReader.open(path, strict_length=strict_length) as reader:
            if merged is None:
                merged = reader.header.copy()
            else:
                merged.merge(reader.header)
    return merged


def combine(input_paths: Sequence[PathLike], output_path: PathLike,
            delete: bool = False, buffer_size: int = BUFFER_CAPACITY,
            strict_length: bool = False) -> Header:
    """
    Concatenate the records of several files under one merged header.

    Parameters:
        input_paths: One or more phase space files, copied in this order
        output_path: Destination file (created or truncated)
        delete: Remove each input once its records have been copied
        buffer_size: Bytes per buffered chunk
        strict_length: Fail on a file size mismatch instead of warning

    Returns:
        The merged header written to output_path
    """
    if not input_paths:
        raise ValueError("Cannot combine zero files")
    check_output_not_input(input_paths, output_path)

    start = time.process_time()
    final_header = merge_headers(input_paths, strict_length=strict_length)
    logger.info(f"Final header: {final_header}")

    with PHSPWriter.create(output_path, final_header, buffer_size) as writer:
        for path in input_paths:
            with PHSPReader.open(path, buffer_size=buffer_size,
                                 check_length=False) as reader:
                for chunk in reader.iter_chunks():
                    writer.write_array(chunk)
                logger.debug(f"Copied {reader.records_read} records "
                             f"from {path}")
            if delete:
                # Copied records must leave our buffer before their source goes
                writer.flush()
                os.remove(path)
                logger.info(f"Deleted {path}")

    logger.info(f"Combined {len(input_paths)} files into {output_path} "
                f"({writer.records_written} records, "
                f"CPU time {time.process_time() - start:.3f}s)")
    return final_header
