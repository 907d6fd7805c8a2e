#!/usr/bin/env python3
"""
Command-line regression tests for homoruns and extract-window.

Programs are run as modules in a subprocess, the way users invoke them.
"""

import os
import shutil
import subprocess
import sys
import tempfile

import pytest
from Bio import SeqIO

from conftest import generate_dna_sequence, mutated_alignment, write_fasta


def run_module(module, *args):
    return subprocess.run([sys.executable, '-m', module, *args], capture_output=True, text=True)


@pytest.fixture
def temp_dir():
    """Create temporary directory for testing."""
    test_dir = tempfile.mkdtemp(prefix='alndiversity_cli_test_')
    original_dir = os.getcwd()
    os.chdir(test_dir)
    yield test_dir
    os.chdir(original_dir)
    shutil.rmtree(test_dir)


@pytest.fixture
def base_sequence():
    return generate_dna_sequence("cli", 500)


@pytest.fixture
def alignment_file(temp_dir, base_sequence):
    records = mutated_alignment(base_sequence, 7)
    # Missing data in one record
    label, sequence = records[0]
    records[0] = (label, sequence[:100] + "NNNNN" + sequence[105:])
    write_fasta('alignment.fasta', records)
    return 'alignment.fasta'


class TestHomoruns:
    module = 'alndiversity.homoruns'

    def test_diversity_table(self, alignment_file):
        result = run_module(self.module, '--input-file', alignment_file, '--window-size', '50',
                            '--step-size', '25', '--out-file', 'diversity.tsv')

        assert result.returncode == 0, result.stderr
        with open('diversity.tsv') as f:
            lines = f.read().splitlines()
        assert lines[0] == "window_start\tcount"
        rows = [line.split('\t') for line in lines[1:]]
        starts = sorted({int(start) for start, _ in rows})
        # 1-based starts 1, 26, ..., 426 (window at 450 would end flush with the alignment)
        assert starts == list(range(1, 427, 25))
        for start in starts:
            assert sum(int(count) for s, count in rows if int(s) == start) == 7

    def test_impute_and_plot(self, alignment_file):
        result = run_module(self.module, '--input-file', alignment_file, '--window-size', '50',
                            '--step-size', '50', '--impute-missing', '--out-file', 'diversity.tsv',
                            '--plot', 'diversity.png', '--log-level', 'DEBUG')

        assert result.returncode == 0, result.stderr
        assert "Imputed 5 missing nucleotides" in result.stderr
        assert os.path.getsize('diversity.png') > 0

    def test_malformed_input(self, temp_dir):
        with open('bad.fasta', 'w') as f:
            f.write("ACGT\nACGT\n")

        result = run_module(self.module, '--input-file', 'bad.fasta', '--window-size', '2',
                            '--step-size', '1', '--out-file', 'out.tsv')

        assert result.returncode == 1
        assert "does not appear to be a FASTA file" in result.stderr
        assert "usage:" in result.stderr

    def test_undecodable_input(self, temp_dir):
        with open('bad.fasta', 'wb') as f:
            f.write(b">a\nAC\xff\xfeGT\n>b\nACGTGT\n")

        result = run_module(self.module, '--input-file', 'bad.fasta', '--window-size', '2',
                            '--step-size', '1', '--out-file', 'out.tsv')

        assert result.returncode == 1
        assert "not a text FASTA file" in result.stderr
        assert "usage:" in result.stderr
        assert "Traceback" not in result.stderr

    def test_inconsistent_lengths(self, temp_dir):
        write_fasta('uneven.fasta', [("a", "ACGTACGT"), ("b", "ACGTAC")])

        result = run_module(self.module, '--input-file', 'uneven.fasta', '--window-size', '2',
                            '--step-size', '1', '--out-file', 'out.tsv')

        assert result.returncode == 1
        assert "same length" in result.stderr

    def test_missing_file(self, temp_dir):
        result = run_module(self.module, '--input-file', 'nope.fasta', '--window-size', '2',
                            '--step-size', '1', '--out-file', 'out.tsv')

        assert result.returncode == 1

    @pytest.mark.parametrize("window_size,step_size", [('0', '1'), ('5', '0')])
    def test_non_positive_sizes(self, alignment_file, window_size, step_size):
        result = run_module(self.module, '--input-file', alignment_file, '--window-size', window_size,
                            '--step-size', step_size, '--out-file', 'out.tsv')

        assert result.returncode == 2
        assert "must be > 0" in result.stderr


class TestExtractWindow:
    module = 'alndiversity.extract'

    def test_tab_window(self, alignment_file, base_sequence):
        result = run_module(self.module, '--input-file', alignment_file, '--start-position', '201',
                            '--window-size', '30', '--out-file', 'window.tsv')

        assert result.returncode == 0, result.stderr
        with open('window.tsv') as f:
            lines = f.read().splitlines()
        assert lines[0] == "name\tcount\tsequence"
        assert lines[1] == f"consensus\t-\t{base_sequence[200:230]}"
        variant_rows = [line.split('\t') for line in lines[2:]]
        assert sum(int(count) for _, count, _ in variant_rows) == 7
        assert all(len(masked) == 30 for _, _, masked in variant_rows)

    def test_fasta_window_case_insensitive_format(self, alignment_file, base_sequence):
        result = run_module(self.module, '--input-file', alignment_file, '--window-size', '20',
                            '--out-format', 'FASTA', '--out-file', 'window.fasta')

        assert result.returncode == 0, result.stderr
        records = list(SeqIO.parse('window.fasta', 'fasta'))
        assert records[0].id == "consensus"
        assert str(records[0].seq) == base_sequence[:20]
        assert sum(int(r.description.split('count=')[1]) for r in records[1:]) == 7

    def test_query_window(self, alignment_file, base_sequence):
        with open('query.fasta', 'w') as f:
            f.write(">query\n" + base_sequence[300:360] + "\n")

        result = run_module(self.module, '--input-file', alignment_file, '--query-sequence', 'query.fasta',
                            '--out-file', 'window.tsv')

        assert result.returncode == 0, result.stderr
        with open('window.tsv') as f:
            lines = f.read().splitlines()
        assert lines[0] == "# query_start=1 query_length=60 reference_start=301 reference_length=60"
        assert lines[2] == f"query\t-\t{base_sequence[300:360]}"
        assert lines[3] == f"consensus\t-\t{base_sequence[300:360]}"

    def test_query_window_infix_aligner(self, alignment_file, base_sequence):
        with open('query.fasta', 'w') as f:
            f.write(">query\n" + base_sequence[300:360] + "\n")

        result = run_module(self.module, '--input-file', alignment_file, '--query-sequence', 'query.fasta',
                            '--aligner', 'infix', '--out-file', 'window.tsv')

        assert result.returncode == 0, result.stderr
        with open('window.tsv') as f:
            first_line = f.readline().strip()
        assert first_line == "# query_start=1 query_length=60 reference_start=301 reference_length=60"

    def test_window_past_end(self, alignment_file):
        result = run_module(self.module, '--input-file', alignment_file, '--start-position', '490',
                            '--window-size', '20', '--out-file', 'window.tsv')

        assert result.returncode == 1
        assert "extends past the end" in result.stderr

    def test_window_size_required(self, alignment_file):
        result = run_module(self.module, '--input-file', alignment_file, '--out-file', 'window.tsv')

        assert result.returncode == 2
        assert "--window-size is required" in result.stderr

    def test_start_position_must_be_positive(self, alignment_file):
        result = run_module(self.module, '--input-file', alignment_file, '--start-position', '0',
                            '--window-size', '5', '--out-file', 'window.tsv')

        assert result.returncode == 2

    def test_empty_query_file(self, alignment_file):
        with open('query.fasta', 'w') as f:
            f.write("\n\n")

        result = run_module(self.module, '--input-file', alignment_file, '--query-sequence', 'query.fasta',
                            '--out-file', 'window.tsv')

        assert result.returncode == 1
        assert "empty" in result.stderr

    @pytest.mark.parametrize("option,value,message", [
        ('--match-score', '0', "match_score must be positive"),
        ('--gap-open-penalty', '-1', "penalties cannot be negative"),
    ])
    def test_invalid_aligner_scores(self, alignment_file, option, value, message):
        result = run_module(self.module, '--input-file', alignment_file, '--window-size', '5',
                            option, value, '--out-file', 'window.tsv')

        assert result.returncode == 2
        assert message in result.stderr
        assert not os.path.exists('window.tsv')
