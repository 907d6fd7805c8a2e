"""
alndiversity: sequence diversity in windows of a DNA multiple-sequence alignment.

Finds low-diversity regions along a FASTA alignment and lists the distinct
sequences present in any window, chosen by coordinates or by the best local
match of a query sequence.
"""

__version__ = "0.1.0"

from .core import AlignmentStore, build_consensus, parse_fasta_alignment, read_alignment
from .errors import AlignmentError, AlignmentFailure, InconsistentLength, MalformedInput, OutOfRange
from .types import AlignmentStatistics, Record, WindowDiversity

__all__ = [
    "AlignmentError",
    "AlignmentFailure",
    "AlignmentStatistics",
    "AlignmentStore",
    "InconsistentLength",
    "MalformedInput",
    "OutOfRange",
    "Record",
    "WindowDiversity",
    "build_consensus",
    "parse_fasta_alignment",
    "read_alignment",
    "__version__",
]
