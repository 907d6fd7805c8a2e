"""Exceptions raised while loading and analyzing alignments."""


class AlignmentError(Exception):
    """Base class for all alignment analysis errors."""


class MalformedInput(AlignmentError, ValueError):
    """Alignment or query file is not a usable FASTA file."""


class InconsistentLength(AlignmentError, ValueError):
    """Sequences within one alignment differ in length."""


class OutOfRange(AlignmentError, IndexError):
    """Window coordinates fall outside the alignment."""


class AlignmentFailure(AlignmentError, RuntimeError):
    """Local aligner returned no match or inconsistent boundaries."""
