"""
Geometric transforms of phase space files.

Rotation about the z axis (the scoring plane normal) is applied to record
positions and direction cosines; the header is unchanged because neither the
particle count nor the energies change.
"""

import logging
import math
import os
import shutil
import tempfile
from pathlib import Path

import numpy as np

from egsphsp.core.record import transform_arrays
from egsphsp.io.reader import BUFFER_CAPACITY, PathLike, PHSPReader
from egsphsp.io.writer import PHSPWriter

logger = logging.getLogger(__name__)


def rotation_matrix(theta: float) -> np.ndarray:
    """
    Counter clockwise rotation by `theta` radians about the z axis.

    Returns:
        3x3 float32 matrix, third row and column identity
    """
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return np.array([[cos_t, -sin_t, 0.0],
                     [sin_t, cos_t, 0.0],
                     [0.0, 0.0, 1.0]], dtype=np.float32)


def _transform_stream(reader: PHSPReader, writer: PHSPWriter,
                      matrix: np.ndarray) -> int:
    transformed = 0
    for chunk in reader.iter_chunks():
        transform_arrays(chunk['x_cm'], chunk['y_cm'],
                         chunk['x_cos'], chunk['y_cos'], matrix)
        writer.write_array(chunk)
        transformed += len(chunk)
    return transformed


def transform(input_path: PathLike, output_path: PathLike,
              matrix: np.ndarray, buffer_size: int = BUFFER_CAPACITY,
              strict_length: bool = False) -> int:
    """
    Transform every record of a file by a 3x3 matrix.

    When input and output are the same file the result is written to a
    temporary file in the same directory which then replaces the input, so
    a failure leaves the input untouched.

    Parameters:
        input_path: Source phase space file
        output_path: Destination, may equal input_path
        matrix: 3x3 transformation matrix (see rotation_matrix)
        buffer_size: Bytes per buffered chunk
        strict_length: Fail on a file size mismatch instead of warning

    Returns:
        Number of records transformed
    """
    matrix = np.ascontiguousarray(matrix, dtype=np.float32)
    if matrix.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {matrix.shape}")

    input_path = Path(input_path)
    output_path = Path(output_path)
    in_place = (output_path.exists()
                and os.path.samefile(input_path, output_path))

    with PHSPReader.open(input_path, buffer_size=buffer_size,
                         strict_length=strict_length) as reader:
        n_particles = reader.header.total_particles
        if in_place:
            logger.info(f"Transforming {input_path} in place")
            fd, temp_path = tempfile.mkstemp(suffix='.egsphsp',
                                             dir=output_path.parent)
            os.close(fd)
            shutil.copymode(input_path, temp_path)
            try:
                with PHSPWriter.create(temp_path, reader.header,
                                       buffer_size) as writer:
                    transformed = _transform_stream(reader, writer, matrix)
            except BaseException:
                os.remove(temp_path)
                raise
        else:
            logger.info(f"Transforming {input_path} and saving to "
                        f"{output_path}")
            with PHSPWriter.create(output_path, reader.header,
                                   buffer_size) as writer:
                transformed = _transform_stream(reader, writer, matrix)

    if in_place:
        os.replace(temp_path, output_path)

    if transformed != n_particles:
        logger.warning(f"Transformed {transformed} records, "
                       f"expected {n_particles}")
    else:
        logger.info(f"Transformed {transformed} records")
    return transformed


def rotate(input_path: PathLike, output_path: PathLike, angle: float,
           **kwargs) -> int:
    """Rotate a file counter clockwise by `angle` radians about z."""
    logger.debug(f"Rotating {input_path} by {angle} radians")
    return transform(input_path, output_path, rotation_matrix(angle),
                     **kwargs)
