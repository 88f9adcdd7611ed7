# rig/models/secondary_structure.py
"""Secondary structure elements, held by a graph and weakly referenced by its nodes"""

from dataclasses import dataclass

from rig.exceptions import ValidationError

HELIX = 'H'
STRAND = 'S'
TURN = 'T'
OTHER = 'O'

SS_TYPES = (HELIX, STRAND, TURN, OTHER)


@dataclass(eq=False)
class SecStrucElement:
    """A helix, strand or turn spanning residues start..end (inclusive)"""
    ss_type: str
    ss_id: str
    start: int
    end: int

    def __post_init__(self):
        if self.ss_type not in SS_TYPES:
            raise ValidationError(f"Unknown secondary structure type: {self.ss_type}")
        if self.start > self.end:
            raise ValidationError(f"Invalid element range {self.start}-{self.end}")

    def contains(self, serial: int) -> bool:
        return self.start <= serial <= self.end

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def is_helix(self) -> bool:
        return self.ss_type == HELIX

    @property
    def is_strand(self) -> bool:
        return self.ss_type == STRAND

    def __str__(self) -> str:
        return f"{self.ss_id}:{self.start}-{self.end}"
