"""Operations module: Transform, combine and sample phase space files."""

from egsphsp.operations.transform import transform, rotate, rotation_matrix
from egsphsp.operations.combine import combine, merge_headers
from egsphsp.operations.sample import sample

__all__ = ["transform", "rotate", "rotation_matrix", "combine",
           "merge_headers", "sample"]
