# rig/core/neighborhood.py
"""
Residue neighborhoods of a Residue Interaction Graph

A neighborhood maps residue serial -> ResidueNode in ascending serial order
and excludes its central residue(s). Motif strings describe the neighborhood
as one-letter codes with the center marked 'x'.
"""

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Tuple

from rig.exceptions import InvalidNodeError
from rig.models.graph import ResidueInteractionGraph, ResidueNode

logger = logging.getLogger("rig.neighborhood")

CENTER_LETTER = 'x'
GAP_LETTER = '_'


class _ResidueMap(Mapping):
    """Ordered serial -> node map around one or more central residues"""

    def __init__(self, centers: Tuple[ResidueNode, ...], members: Iterable[ResidueNode]):
        self._centers = centers
        center_serials = {c.serial for c in centers}
        self._members: Dict[int, ResidueNode] = {
            node.serial: node for node in sorted(members, key=lambda n: n.serial)
            if node.serial not in center_serials
        }

    def __getitem__(self, serial: int) -> ResidueNode:
        return self._members[serial]

    def __iter__(self) -> Iterator[int]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    @property
    def center_serials(self) -> List[int]:
        return sorted(c.serial for c in self._centers)

    def _walk(self) -> Iterator[Tuple[int, str]]:
        """Yield (serial, letter) over the span, letter '' for absent serials"""
        centers = set(self.center_serials)
        serials = list(self._members) + list(centers)
        for serial in range(min(serials), max(serials) + 1):
            if serial in centers:
                yield serial, CENTER_LETTER
            elif serial in self._members:
                yield serial, self._members[serial].one_letter
            else:
                yield serial, ''

    def motif(self) -> str:
        """Motif with runs of missing residues written as _{n}"""
        parts = []
        gap_size = 0
        for _, letter in self._walk():
            if not letter:
                gap_size += 1
                continue
            if gap_size:
                parts.append(f"{GAP_LETTER}{{{gap_size}}}")
                gap_size = 0
            parts.append(letter)
        return ''.join(parts)

    def motif_no_gaps(self) -> str:
        return ''.join(letter for _, letter in self._walk())

    def motif_full_gaps(self) -> str:
        return ''.join(letter or GAP_LETTER for _, letter in self._walk())

    def contains_residue_type(self, residue_type: str) -> bool:
        residue_type = residue_type.upper()
        return any(node.residue_type == residue_type for node in self._members.values())

    def serials_csv(self) -> str:
        return ','.join(str(serial) for serial in self._members)

    def _sides(self) -> Tuple[List[str], List[str]]:
        """Residue types left of the first center and right of the last one"""
        centers = self.center_serials
        left = [n.residue_type for s, n in self._members.items() if s < centers[0]]
        right = [n.residue_type for s, n in self._members.items() if s > centers[-1]]
        return left, right

    def __str__(self) -> str:
        return f"{self.motif()} ({self.serials_csv()})"


class Neighborhood(_ResidueMap):
    """Neighbors of a single central residue"""

    def __init__(self, center: ResidueNode, members: Iterable[ResidueNode]):
        super().__init__((center,), members)

    @property
    def center(self) -> ResidueNode:
        return self._centers[0]

    def same_motif(self, other: 'Neighborhood') -> bool:
        """Same center type and same residue types on each side of the center"""
        if len(self) != len(other):
            return False
        if self.center.residue_type != other.center.residue_type:
            return False
        return self._sides() == other._sides()

    def matches(self, other: 'Neighborhood') -> bool:
        """True if each side of this motif is a subsequence of the same side in other"""
        for mine, theirs in zip(self._sides(), other._sides()):
            remaining = iter(theirs)
            if not all(residue_type in remaining for residue_type in mine):
                return False
        return True


class CommonNeighborhood(_ResidueMap):
    """Residues in contact with both i and j"""

    def __init__(self, i_node: ResidueNode, j_node: ResidueNode,
                 members: Iterable[ResidueNode], connected: bool):
        super().__init__((i_node, j_node), members)
        self.connected = connected

    @property
    def i_node(self) -> ResidueNode:
        return self._centers[0]

    @property
    def j_node(self) -> ResidueNode:
        return self._centers[1]


class NeighborhoodView:
    """Read-only neighborhood queries over one graph"""

    def __init__(self, graph: ResidueInteractionGraph):
        self.graph = graph

    def _node(self, serial: int) -> ResidueNode:
        node = self.graph.get_node(serial)
        if node is None:
            raise InvalidNodeError(f"No residue with serial {serial} in graph", {'serial': serial})
        return node

    def first_shell(self, serial: int) -> Neighborhood:
        """Direct neighbors of a residue"""
        return Neighborhood(self._node(serial), self.graph.get_ordered_neighbors(serial))

    def second_shell(self, serial: int) -> Neighborhood:
        """Neighbors of the neighbors of a residue, excluding the residue itself"""
        members: Dict[int, ResidueNode] = {}
        for neighbor in self.graph.neighbor_serials(serial):
            for node in self.graph.get_ordered_neighbors(neighbor):
                members[node.serial] = node
        return Neighborhood(self._node(serial), members.values())

    def common_neighborhood(self, i: int, j: int) -> Tuple[CommonNeighborhood, bool]:
        """Common neighbors of i and j

        Returns:
            Tuple of the common neighborhood and whether i and j are in
            contact (strictly i -> j for directed graphs)
        """
        i_node, j_node = self._node(i), self._node(j)
        shared = set(self.graph.neighbor_serials(i)) & set(self.graph.neighbor_serials(j))
        connected = self.graph.contains_edge(i, j)
        nbhood = CommonNeighborhood(i_node, j_node,
                                    (self.graph.get_node(s) for s in shared), connected)
        return nbhood, connected

    def all_common_neighborhood_sizes(self) -> Dict[Tuple[int, int], int]:
        """Sizes of all non-empty common neighborhoods, contact or not"""
        neighbor_sets = {s: set(self.graph.neighbor_serials(s)) for s in self.graph.serials}
        sizes = {}
        for i, i_nbs in neighbor_sets.items():
            for j, j_nbs in neighbor_sets.items():
                if i == j or (not self.graph.directed and j < i):
                    continue
                size = len(i_nbs & j_nbs)
                if size > 0:
                    sizes[(i, j)] = size
        logger.debug(f"Found {len(sizes)} residue pairs with common neighbors")
        return sizes
