"""Shared fixtures: deterministic synthetic alignments."""

import os
import random

import pytest

from alndiversity.core import read_alignment


N_RECORDS = 19
ALIGNMENT_LENGTH = 10040

SUBSTITUTIONS = {'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G', '-': 'A'}


def generate_dna_sequence(seed_str: str, length: int, alphabet: str = 'ACGT') -> str:
    """Generate a deterministic DNA sequence from a seed string."""
    rng = random.Random(seed_str)
    return ''.join(rng.choice(alphabet) for _ in range(length))


def mutated_alignment(base: str, n_records: int):
    """Records derived from base where each column is changed in exactly one record.

    With three or more records the majority consensus is base itself, and
    every record differs from every other within any n_records columns.
    """
    records = []
    for i in range(n_records):
        sequence = list(base)
        for pos in range(i, len(base), n_records):
            sequence[pos] = SUBSTITUTIONS[sequence[pos]]
        records.append((f"seq{i + 1}", ''.join(sequence)))
    return records


def write_fasta(path: str, records, line_width: int = 60):
    with open(path, 'w') as f:
        for label, sequence in records:
            f.write(f">{label}\n")
            for i in range(0, len(sequence), line_width):
                f.write(sequence[i:i + line_width] + "\n")
            f.write("\n")


@pytest.fixture(scope="session")
def large_base_sequence():
    # Occasional gaps, as in a real alignment
    return generate_dna_sequence("large-alignment", ALIGNMENT_LENGTH, alphabet='ACGTACGTACGT-')


@pytest.fixture(scope="session")
def large_alignment_file(tmp_path_factory, large_base_sequence):
    """19 records of 10040 columns written as a wrapped FASTA file."""
    path = os.path.join(str(tmp_path_factory.mktemp("alignments")), "large.fasta")
    write_fasta(path, mutated_alignment(large_base_sequence, N_RECORDS))
    return path


@pytest.fixture
def large_alignment(large_alignment_file):
    return read_alignment(large_alignment_file)
