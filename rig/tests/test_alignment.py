#!/usr/bin/env python3
"""
Tests for the alignment index
"""

import pytest

from rig.exceptions import AlignmentError
from rig.models.alignment import GAP, AlignmentIndex


class TestIndex:
    """Test column and position lookups"""

    def test_dimensions(self, gapped_alignment):
        assert gapped_alignment.alignment_length == 6
        assert gapped_alignment.number_of_sequences == 3
        assert gapped_alignment.tags == ["target", "tA", "tB"]

    def test_al2seq(self, gapped_alignment):
        assert gapped_alignment.al2seq("target", 1) == 1
        assert gapped_alignment.al2seq("target", 3) == GAP
        assert gapped_alignment.al2seq("target", 4) == 3
        assert gapped_alignment.al2seq("tB", 2) == GAP

    def test_seq2al(self, gapped_alignment):
        assert gapped_alignment.seq2al("target", 3) == 4
        assert gapped_alignment.seq2al("tB", 2) == 3
        assert gapped_alignment.seq2al("tA", 6) == 6

    def test_lookups_are_inverse(self, gapped_alignment):
        for tag in gapped_alignment.tags:
            for position in range(1, gapped_alignment.sequence_length(tag) + 1):
                column = gapped_alignment.seq2al(tag, position)
                assert gapped_alignment.al2seq(tag, column) == position

    def test_out_of_range(self, gapped_alignment):
        with pytest.raises(AlignmentError):
            gapped_alignment.al2seq("target", 7)
        with pytest.raises(AlignmentError):
            gapped_alignment.seq2al("target", 6)
        with pytest.raises(AlignmentError):
            gapped_alignment.seq2al("nope", 1)

    def test_sequences(self, gapped_alignment):
        assert gapped_alignment.get_aligned_sequence("target") == "AC-DEF"
        assert gapped_alignment.get_sequence_no_gaps("target") == "ACDEF"
        assert gapped_alignment.sequence_length("tB") == 5
        assert gapped_alignment.has_tag("tA")
        assert "tC" not in gapped_alignment

    def test_al2seq_map(self, gapped_alignment):
        assert gapped_alignment.al2seq_map("tB").tolist() == [1, GAP, 2, 3, 4, 5]

    def test_column(self, gapped_alignment):
        assert gapped_alignment.column(3) == {"target": "-", "tA": "G", "tB": "G"}

    def test_upper_case(self):
        alignment = AlignmentIndex({"a": "ac-d"})
        assert alignment.get_aligned_sequence("a") == "AC-D"


class TestConstruction:
    """Test alignment construction"""

    def test_empty(self):
        with pytest.raises(AlignmentError):
            AlignmentIndex({})

    def test_unequal_lengths(self):
        with pytest.raises(AlignmentError) as exc_info:
            AlignmentIndex({"a": "ACD", "b": "AC"})
        assert exc_info.value.details['lengths'] == {"a": 3, "b": 2}

    def test_trivial(self):
        alignment = AlignmentIndex.trivial({"a": "ACD", "b": "ACD"})
        assert alignment.seq2al("b", 2) == 2

    def test_trivial_rejects_gaps(self):
        with pytest.raises(AlignmentError):
            AlignmentIndex.trivial({"a": "A-D", "b": "ACD"})

    def test_copy_and_add(self, gapped_alignment):
        extended = gapped_alignment.copy_and_add("dummy", "XXXXXX")
        assert extended.number_of_sequences == 4
        assert gapped_alignment.number_of_sequences == 3
        with pytest.raises(AlignmentError):
            extended.copy_and_add("tA", "ACGDEF")


class TestFastaFiles:
    """Test FASTA reading and writing"""

    def test_read_fasta(self, tmp_path):
        path = tmp_path / "aln.fasta"
        path.write_text(">target\nAC-D\nEF\n>tA\nACGDEF\n")
        alignment = AlignmentIndex.from_fasta(str(path))

        assert alignment.tags == ["target", "tA"]
        assert alignment.get_aligned_sequence("target") == "AC-DEF"

    def test_duplicate_tags(self, tmp_path):
        path = tmp_path / "aln.fasta"
        path.write_text(">a\nACD\n>a\nACD\n")
        with pytest.raises(AlignmentError):
            AlignmentIndex.from_fasta(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "aln.fasta"
        path.write_text("")
        with pytest.raises(AlignmentError):
            AlignmentIndex.from_fasta(str(path))

    def test_write_and_read_back(self, tmp_path, gapped_alignment):
        path = tmp_path / "out.fasta"
        assert gapped_alignment.write_fasta(str(path)) == 3

        reread = AlignmentIndex.from_fasta(str(path))
        assert reread.tags == gapped_alignment.tags
        assert reread.get_aligned_sequence("tB") == "A-GDEF"
