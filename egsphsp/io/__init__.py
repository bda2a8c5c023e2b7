"""IO module: Sequential phase space reader and writer."""

from egsphsp.io.reader import PHSPReader, read_header
from egsphsp.io.writer import (PHSPWriter, check_output_not_input,
                               rewrite_header)

__all__ = ["PHSPReader", "read_header", "PHSPWriter", "rewrite_header",
           "check_output_not_input"]
