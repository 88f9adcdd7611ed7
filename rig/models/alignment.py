# rig/models/alignment.py
"""
Multiple sequence alignment index

Maps (tag, alignment column) to (tag, sequence position) and back. Columns
and sequence positions are both 1-based; a column holding a gap maps to GAP.
"""

import logging
from typing import Dict, List, Mapping, TextIO, Union

import numpy as np
from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from rig.exceptions import AlignmentError

logger = logging.getLogger("rig.alignment")

GAP = -1
GAP_CHARACTER = '-'


class AlignmentIndex:
    """Alignment of tagged sequences with column/position lookups"""

    def __init__(self, sequences: Mapping[str, str]):
        """Build the index from tag -> aligned sequence

        Args:
            sequences: Aligned sequences (gaps as '-'), all of equal length

        Raises:
            AlignmentError: If no sequences are given or lengths differ
        """
        if not sequences:
            raise AlignmentError("Alignment must contain at least one sequence")

        lengths = {tag: len(seq) for tag, seq in sequences.items()}
        if len(set(lengths.values())) != 1:
            raise AlignmentError("Aligned sequences differ in length", {'lengths': lengths})

        self._tags: List[str] = list(sequences)
        self._aligned: Dict[str, str] = {tag: seq.upper() for tag, seq in sequences.items()}
        self._length = next(iter(lengths.values()))
        if self._length == 0:
            raise AlignmentError("Alignment has no columns")

        self._al2seq: Dict[str, np.ndarray] = {}
        self._seq2al: Dict[str, np.ndarray] = {}
        for tag, aligned in self._aligned.items():
            is_residue = np.fromiter((c != GAP_CHARACTER for c in aligned), dtype=bool, count=self._length)
            positions = np.cumsum(is_residue)
            self._al2seq[tag] = np.where(is_residue, positions, GAP)
            self._seq2al[tag] = np.flatnonzero(is_residue) + 1

    @classmethod
    def from_fasta(cls, path: str, file_format: str = "fasta") -> 'AlignmentIndex':
        """Read an alignment file with Biopython (FASTA or PIR)

        Raises:
            AlignmentError: For duplicate tags or an empty file
        """
        sequences: Dict[str, str] = {}
        for record in SeqIO.parse(path, file_format):
            if record.id in sequences:
                raise AlignmentError(f"Duplicate sequence tag {record.id} in {path}",
                                     {'tag': record.id, 'path': path})
            sequences[record.id] = str(record.seq).replace(' ', '')

        if not sequences:
            raise AlignmentError(f"No sequences found in {path}", {'path': path})

        logger.debug(f"Read alignment of {len(sequences)} sequences from {path}")
        return cls(sequences)

    @classmethod
    def trivial(cls, sequences: Mapping[str, str]) -> 'AlignmentIndex':
        """Gapless 1:1 alignment of equal-length sequences"""
        lengths = {tag: len(seq) for tag, seq in sequences.items()}
        if len(set(lengths.values())) > 1:
            raise AlignmentError("Can't create trivial alignment, sequences differ in length",
                                 {'lengths': lengths})
        for tag, seq in sequences.items():
            if GAP_CHARACTER in seq:
                raise AlignmentError(f"Sequence {tag} of a trivial alignment contains gaps", {'tag': tag})
        return cls(sequences)

    def copy_and_add(self, tag: str, aligned_sequence: str) -> 'AlignmentIndex':
        """New index with one more aligned sequence"""
        if tag in self._aligned:
            raise AlignmentError(f"Tag {tag} already in alignment", {'tag': tag})
        sequences = dict(self._aligned)
        sequences[tag] = aligned_sequence
        return AlignmentIndex(sequences)

    def write_fasta(self, handle: Union[str, TextIO]) -> int:
        """Write the aligned sequences as FASTA; returns the number written"""
        records = [SeqRecord(Seq(self._aligned[tag]), id=tag, description="") for tag in self._tags]
        return SeqIO.write(records, handle, "fasta")

    # -- queries -----------------------------------------------------------

    @property
    def tags(self) -> List[str]:
        return list(self._tags)

    @property
    def alignment_length(self) -> int:
        return self._length

    @property
    def number_of_sequences(self) -> int:
        return len(self._tags)

    def has_tag(self, tag: str) -> bool:
        return tag in self._aligned

    def __contains__(self, tag: str) -> bool:
        return self.has_tag(tag)

    def _check_tag(self, tag: str) -> None:
        if tag not in self._aligned:
            raise AlignmentError(f"Tag {tag} not in alignment", {'tag': tag})

    def get_aligned_sequence(self, tag: str) -> str:
        self._check_tag(tag)
        return self._aligned[tag]

    def get_sequence_no_gaps(self, tag: str) -> str:
        return self.get_aligned_sequence(tag).replace(GAP_CHARACTER, '')

    def sequence_length(self, tag: str) -> int:
        self._check_tag(tag)
        return len(self._seq2al[tag])

    def al2seq(self, tag: str, column: int) -> int:
        """Sequence position at column, or GAP

        Raises:
            AlignmentError: For an unknown tag or a column outside 1..alignment_length
        """
        self._check_tag(tag)
        if not 1 <= column <= self._length:
            raise AlignmentError(f"Column {column} outside alignment of length {self._length}",
                                 {'tag': tag, 'column': column})
        return int(self._al2seq[tag][column - 1])

    def seq2al(self, tag: str, position: int) -> int:
        """Alignment column of a sequence position

        Raises:
            AlignmentError: For an unknown tag or a position outside the sequence
        """
        self._check_tag(tag)
        positions = self._seq2al[tag]
        if not 1 <= position <= len(positions):
            raise AlignmentError(f"Position {position} outside sequence {tag} of length {len(positions)}",
                                 {'tag': tag, 'position': position})
        return int(positions[position - 1])

    def al2seq_map(self, tag: str) -> np.ndarray:
        """Column -> position array for a tag (index 0 is column 1)"""
        self._check_tag(tag)
        return self._al2seq[tag].copy()

    def column(self, column: int) -> Dict[str, str]:
        """Characters of all sequences at a column"""
        if not 1 <= column <= self._length:
            raise AlignmentError(f"Column {column} outside alignment of length {self._length}",
                                 {'column': column})
        return {tag: self._aligned[tag][column - 1] for tag in self._tags}

    def __repr__(self) -> str:
        return f"AlignmentIndex(sequences={self.number_of_sequences}, length={self._length})"
