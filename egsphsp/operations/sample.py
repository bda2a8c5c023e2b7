"""
Random subsampling of phase space files.

Every record is kept independently with probability 1/rate. The header of
the output is rebuilt from the kept records only, and the number of source
particles is divided by the rate. Record weights are not renormalized.
"""

import logging
import time
from typing import Sequence

import numpy as np

from egsphsp.core.header import Header
from egsphsp.core.layout import CHARGED_BIT, MODE0
from egsphsp.errors import ModeMismatchError
from egsphsp.io.reader import BUFFER_CAPACITY, PathLike, PHSPReader
from egsphsp.io.writer import (PHSPWriter, check_output_not_input,
                               rewrite_header)

logger = logging.getLogger(__name__)


def _accumulate(header: Header, kept: np.ndarray):
    """Update particle/photon counts and energy range from kept records."""
    if len(kept) == 0:
        return
    header.add_particles(len(kept))
    charged = (kept['latch'] & CHARGED_BIT) != 0
    header.total_photons += int(np.count_nonzero(~charged))

    # Negative energies mark first-scored-by-primary records, skip them
    energies = kept['total_energy'][kept['total_energy'] > 0.0]
    if len(energies):
        header.min_energy = min(header.min_energy, float(energies.min()))
        header.max_energy = max(header.max_energy, float(energies.max()))


def sample(input_paths: Sequence[PathLike], output_path: PathLike,
           rate: int = 10, seed: int = 0, buffer_size: int = BUFFER_CAPACITY,
           strict_length: bool = False) -> Header:
    """
    Keep roughly one out of every `rate` records of the inputs.

    Parameters:
        input_paths: One or more MODE0 phase space files
        output_path: Destination file (created or truncated)
        rate: Inverse keep probability, 1 keeps everything
        seed: Seed of the random generator, same seed gives same output
        buffer_size: Bytes per buffered chunk
        strict_length: Fail on a file size mismatch instead of warning

    Returns:
        The header written to output_path

    Raises:
        ModeMismatchError: an input is not MODE0
        ValueError: no inputs, rate below 1, or output is also an input
    """
    if not input_paths:
        raise ValueError("Cannot sample zero files")
    if rate < 1:
        raise ValueError(f"Sample rate must be at least 1, got {rate}")
    check_output_not_input(input_paths, output_path)

    # Validate every input before the output is touched
    for path in input_paths:
        with PHSPReader.open(path, strict_length=strict_length) as reader:
            if reader.header.mode != MODE0.mode:
                raise ModeMismatchError(MODE0.mode, reader.header.mode)

    start = time.process_time()
    rng = np.random.default_rng(seed)
    probability = 1.0 / rate
    header = Header.empty(MODE0.mode)
    source_particles = np.float32(0.0)

    with PHSPWriter.create(output_path, header, buffer_size) as writer:
        for path in input_paths:
            with PHSPReader.open(path, buffer_size=buffer_size,
                                 check_length=False) as reader:
                logger.info(f"Found {reader.header.total_particles} particles "
                            f"in {path}")
                source_particles += np.float32(
                    reader.header.total_particles_in_source)
                for chunk in reader.iter_chunks():
                    kept = chunk[rng.random(len(chunk)) < probability]
                    _accumulate(header, kept)
                    writer.write_array(kept)
            logger.info(f"Now have {header.total_particles} particles")

    header.total_particles_in_source = float(source_particles
                                             / np.float32(rate))
    rewrite_header(output_path, header)
    logger.info(f"Sampled 1 in {rate} into {output_path}: {header} "
                f"(CPU time {time.process_time() - start:.3f}s)")
    return header
