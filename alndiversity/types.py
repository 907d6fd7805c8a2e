"""Shared record types for alignment diversity analysis."""

from typing import List, NamedTuple


class Record(NamedTuple):
    """One FASTA record of an alignment."""
    label: str  # Header text without the leading '>'
    sequence: str  # Aligned sequence, line breaks removed


class AlignmentStatistics(NamedTuple):
    """Location of a query's best local match against the consensus.

    All values are 0-based and non-negative; start + length never exceeds the
    length of the respective sequence.
    """
    reference_start: int
    reference_length: int
    query_start: int
    query_length: int


class AlignmentBoundaries(NamedTuple):
    """Raw boundaries reported by a local aligner backend.

    Ends are exclusive. Values are not validated here; see
    AlignmentStore.extract_sequence.
    """
    reference_begin: int
    reference_end: int
    query_begin: int
    query_end: int
    score: float = 0.0


class WindowDiversity(NamedTuple):
    """Variant group sizes in one window of a diversity scan."""
    start: int  # 0-based window start
    counts: List[int]  # One entry per distinct sub-sequence, unordered
