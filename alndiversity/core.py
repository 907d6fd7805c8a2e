#!/usr/bin/env python3

"""
Alignment store and window analyses.

Reads a FASTA multiple-sequence alignment into memory, builds a per-column
majority consensus, and provides the window operations used by the
homoruns and extract-window programs: sliding-window diversity scans,
single-window variant extraction, query localization against the consensus,
and imputation of missing nucleotides.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from alndiversity.aligners import BiopythonLocalAligner, LocalAligner
from alndiversity.errors import (
    AlignmentError,
    AlignmentFailure,
    InconsistentLength,
    MalformedInput,
    OutOfRange,
)
from alndiversity.types import AlignmentStatistics, Record, WindowDiversity


# Symbols counted when voting for the consensus, in code point order.
# Ties go to the first symbol in this string.
CONSENSUS_ALPHABET = "-ACGNTacgnt"

# Symbols kept as-is by imputation; anything else is treated as missing
STANDARD_NUCLEOTIDES = "AaCcTtGg-"

# Floor for the mask length handed to the aligner
MIN_MASK_LENGTH = 15


def _sequence_matrix(sequences: Sequence[str]) -> np.ndarray:
    """Stack equal-length sequences into an (n_sequences, length) uint8 array."""
    joined = "".join(sequences).encode("ascii", errors="replace")
    return np.frombuffer(joined, dtype=np.uint8).reshape(len(sequences), -1)


def _symbol_codes(symbols: str) -> np.ndarray:
    return np.frombuffer(symbols.encode("ascii"), dtype=np.uint8)


def build_consensus(sequences: Sequence[str]) -> str:
    """
    Build the majority-rule consensus of equal-length aligned sequences.

    Each symbol of CONSENSUS_ALPHABET is counted separately per column (upper
    and lower case are distinct votes); other symbols are ignored. The winning
    symbol is reported in upper case. Columns without any counted symbol
    become 'N'.

    Args:
        sequences: Aligned sequences, all of the same length

    Returns:
        Upper-case consensus sequence with one symbol per column
    """
    if not sequences or not sequences[0]:
        return ""

    matrix = _sequence_matrix(sequences)
    symbols = _symbol_codes(CONSENSUS_ALPHABET)
    counts = np.stack([(matrix == symbol).sum(axis=0) for symbol in symbols])

    # argmax returns the first maximum, so ties resolve by alphabet order
    winners = _symbol_codes(CONSENSUS_ALPHABET.upper())[counts.argmax(axis=0)]
    winners[counts.max(axis=0) == 0] = ord("N")
    return winners.tobytes().decode("ascii")


class AlignmentStore:
    """
    In-memory FASTA alignment with its majority consensus.

    Records keep file order. All sequences have the same length and there are
    at least two of them. The consensus is built once, when the store is
    created.
    """

    def __init__(self, records: Iterable[Tuple[str, str]], source: str = "<alignment>"):
        self.source = source
        self._records: List[Record] = [Record(label, sequence) for label, sequence in records]

        if len(self._records) < 2:
            raise MalformedInput(f"alignment {source} must have at least two sequence records "
                                 f"(found {len(self._records)})")

        expected_length = len(self._records[0].sequence)
        for record in self._records:
            if len(record.sequence) != expected_length:
                raise InconsistentLength(
                    f"all sequences in {source} must be the same length: '{record.label}' has "
                    f"{len(record.sequence)} positions, '{self._records[0].label}' has {expected_length}")

        self._consensus = build_consensus([record.sequence for record in self._records])

    @property
    def n_sequences(self) -> int:
        return len(self._records)

    @property
    def alignment_length(self) -> int:
        return len(self._records[0].sequence)

    @property
    def consensus(self) -> str:
        return self._consensus

    @property
    def records(self) -> Tuple[Record, ...]:
        return tuple(self._records)

    @property
    def labels(self) -> List[str]:
        return [record.label for record in self._records]

    def _check_window(self, start: int, length: int):
        if start < 0 or length < 0:
            raise OutOfRange(f"window start ({start}) and length ({length}) cannot be negative")
        if start + length > self.alignment_length:
            raise OutOfRange(f"window [{start}, {start + length}) extends past the end of the "
                             f"alignment ({self.alignment_length} positions)")

    def extract_consensus_window(self, start: int, length: int) -> str:
        """Return consensus positions [start, start + length)."""
        self._check_window(start, length)
        return self._consensus[start:start + length]

    def diversity_in_windows(self, window_size: int, step_size: int,
                             show_progress: bool = False) -> List[WindowDiversity]:
        """
        Count distinct sequences in a window sliding along the alignment.

        Windows start at 0 and move by step_size while
        start + window_size < alignment_length, so a window that ends exactly
        at the last column is not visited.

        Args:
            window_size: Window size in alignment columns (>= 1)
            step_size: Distance between consecutive window starts (>= 1)
            show_progress: Display a tqdm progress bar

        Returns:
            One WindowDiversity per window, in increasing start order. The
            counts of each window sum to n_sequences.
        """
        if window_size < 1:
            raise ValueError(f"window size must be positive (got {window_size})")
        if step_size < 1:
            raise ValueError(f"step size must be positive (got {step_size})")

        starts = range(0, max(self.alignment_length - window_size, 0), step_size)
        logging.debug(f"Scanning {len(starts)} windows of {window_size} bp every {step_size} bp")

        result = []
        for window_start in tqdm(starts, desc="Scanning windows", unit="window",
                                 disable=not show_progress):
            variant_counts = Counter(record.sequence[window_start:window_start + window_size]
                                     for record in self._records)
            result.append(WindowDiversity(window_start, list(variant_counts.values())))
        return result

    def extract_window(self, start: int, size: int) -> Dict[str, int]:
        """
        Count the distinct sequences in alignment columns [start, start + size).

        Returns:
            Dict mapping each distinct sub-sequence to the number of records
            carrying it
        """
        self._check_window(start, size)
        return dict(Counter(record.sequence[start:start + size] for record in self._records))

    def extract_window_sorted(self, start: int, size: int) -> List[Tuple[str, int]]:
        """
        Same as extract_window, as (sequence, count) pairs by decreasing count.

        The order of sequences with equal counts is not part of the contract.
        """
        self._check_window(start, size)
        return Counter(record.sequence[start:start + size] for record in self._records).most_common()

    def extract_sequence(self, query: str, aligner: Optional[LocalAligner] = None) -> AlignmentStatistics:
        """
        Locate the consensus region that best matches a query sequence.

        Args:
            query: Query nucleotide sequence (non-empty)
            aligner: LocalAligner backend (default: BiopythonLocalAligner)

        Returns:
            AlignmentStatistics with 0-based starts and lengths on the
            consensus (reference) and on the query

        Raises:
            AlignmentFailure: If the aligner finds no match or reports
                boundaries that do not describe a region of either sequence
        """
        if not query:
            raise MalformedInput("query sequence is empty")

        mask_length = max(len(query) // 2, MIN_MASK_LENGTH)
        if aligner is None:
            aligner = BiopythonLocalAligner()
        boundaries = aligner.align(query, self._consensus, len(self._consensus), mask_length)

        if boundaries.reference_begin < 0:
            raise AlignmentFailure(f"matching reference start ({boundaries.reference_begin}) cannot be negative")
        if boundaries.reference_end < boundaries.reference_begin:
            raise AlignmentFailure(f"matching reference end ({boundaries.reference_end}) cannot precede "
                                   f"its start ({boundaries.reference_begin})")
        if boundaries.query_begin < 0:
            raise AlignmentFailure(f"query start ({boundaries.query_begin}) cannot be negative")
        if boundaries.query_end < boundaries.query_begin:
            raise AlignmentFailure(f"query end ({boundaries.query_end}) cannot precede "
                                   f"its start ({boundaries.query_begin})")
        if boundaries.reference_end > self.alignment_length:
            raise AlignmentFailure(f"matching reference end ({boundaries.reference_end}) is past the end "
                                   f"of the consensus ({self.alignment_length})")
        if boundaries.query_end > len(query):
            raise AlignmentFailure(f"query end ({boundaries.query_end}) is past the end of the query ({len(query)})")

        statistics = AlignmentStatistics(
            reference_start=boundaries.reference_begin,
            reference_length=boundaries.reference_end - boundaries.reference_begin,
            query_start=boundaries.query_begin,
            query_length=boundaries.query_end - boundaries.query_begin,
        )
        logging.info(f"Query positions {statistics.query_start + 1}-{boundaries.query_end} match consensus "
                     f"positions {statistics.reference_start + 1}-{boundaries.reference_end} "
                     f"(score {boundaries.score:g})")
        return statistics

    def impute_missing(self) -> int:
        """
        Replace missing nucleotides with the consensus nucleotide.

        Any symbol outside STANDARD_NUCLEOTIDES (N, IUPAC ambiguity codes,
        '?', ...) is replaced in place. The consensus is not recomputed.

        Returns:
            Number of replaced symbols
        """
        matrix = _sequence_matrix([record.sequence for record in self._records])
        missing = ~np.isin(matrix, _symbol_codes(STANDARD_NUCLEOTIDES))
        n_missing = int(missing.sum())
        if n_missing == 0:
            logging.info("No missing nucleotides to impute")
            return 0

        imputed = np.where(missing, _symbol_codes(self._consensus), matrix).astype(np.uint8)
        for i, record in enumerate(self._records):
            if missing[i].any():
                self._records[i] = Record(record.label, imputed[i].tobytes().decode("ascii"))

        logging.info(f"Imputed {n_missing} missing nucleotides in "
                     f"{int(missing.any(axis=1).sum())} sequences")
        return n_missing


def iter_fasta_records(lines: Iterable[str], source: str = "<alignment>") -> Iterator[Record]:
    """
    Split FASTA text into records.

    Blank lines are skipped. The first non-blank line must be a '>' header
    with a non-blank label. Body lines are concatenated without their line
    endings.

    Raises:
        MalformedInput: If there are no records or a header is missing or blank
    """
    label = None
    body: List[str] = []
    for line in lines:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        if line.startswith(">"):
            if label is not None:
                yield Record(label, "".join(body))
            # Only leading spaces are dropped from labels
            label = line[1:].lstrip(" ")
            if not label.strip():
                raise MalformedInput(f"FASTA headers in {source} must contain some non-space characters")
            body = []
        elif label is None:
            raise MalformedInput(f"file {source} does not appear to be a FASTA file (no > on the first line)")
        else:
            body.append(line.rstrip())

    if label is None:
        raise MalformedInput(f"all lines in {source} are empty")
    yield Record(label, "".join(body))


def parse_fasta_alignment(lines: Iterable[str], source: str = "<alignment>") -> AlignmentStore:
    """Build an AlignmentStore from FASTA-formatted lines."""
    return AlignmentStore(iter_fasta_records(lines, source), source=source)


def read_alignment(path: str) -> AlignmentStore:
    """Read a FASTA alignment file into an AlignmentStore."""
    logging.info(f"Reading alignment from {path}")
    try:
        with open(path, encoding="ascii") as f:
            store = parse_fasta_alignment(f, source=path)
    except UnicodeDecodeError as e:
        raise MalformedInput(f"{path} is not a text FASTA file ({e.reason})") from e
    logging.info(f"Loaded {store.n_sequences} sequences, alignment length {store.alignment_length}")
    return store


def read_query_sequence(path: str) -> str:
    """
    Read a query sequence from a FASTA file.

    Only the first record is used; its header is discarded.
    """
    try:
        with open(path, encoding="ascii") as f:
            records = list(iter_fasta_records(f, source=path))
    except UnicodeDecodeError as e:
        raise MalformedInput(f"{path} is not a text FASTA file ({e.reason})") from e
    if len(records) > 1:
        logging.warning(f"{path} contains {len(records)} records; using only the first ({records[0].label})")
    query = records[0].sequence
    if not query:
        raise MalformedInput(f"query sequence in {path} is empty")
    logging.debug(f"Read {len(query)} bp query '{records[0].label}' from {path}")
    return query


__all__ = [
    "AlignmentError",
    "AlignmentFailure",
    "AlignmentStore",
    "InconsistentLength",
    "MalformedInput",
    "OutOfRange",
    "build_consensus",
    "iter_fasta_records",
    "parse_fasta_alignment",
    "read_alignment",
    "read_query_sequence",
]
