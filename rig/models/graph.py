# rig/models/graph.py
"""
Residue Interaction Graph model

Nodes are residues keyed by their 1-based serial, edges are contacts between
two residues. Undirected edges are stored once under (min, max). Nodes and
edges are always iterated in ascending serial order.
"""

import logging
import math
import weakref
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterable, Iterator, List, NamedTuple, Optional, Set, Tuple

import numpy as np

from rig.config.defaults import DEFAULT_CONFIG
from rig.exceptions import (
    InvalidEdgeError, InvalidNodeError, SequenceMismatchError, ValidationError
)
from rig.models.secondary_structure import SecStrucElement
from rig.utils.residues import one_to_three, three_to_one

logger = logging.getLogger("rig.graph")

DEFAULT_CONTACT_TYPE = DEFAULT_CONFIG['graph']['contact_type']
DEFAULT_CUTOFF = DEFAULT_CONFIG['graph']['cutoff']

EdgeKey = Tuple[int, int]


class ResidueNode:
    """A residue: serial, three-letter type and an optional secondary structure reference"""

    __slots__ = ('_serial', '_residue_type', '_sec_struct_ref')

    def __init__(self, serial: int, residue_type: str,
                 sec_struct: Optional[SecStrucElement] = None):
        if serial < 1:
            raise ValidationError(f"Residue serial must be >= 1, got {serial}")
        self._serial = serial
        self._residue_type = residue_type.upper()
        self._sec_struct_ref = None
        if sec_struct is not None:
            self.set_sec_struct(sec_struct)

    @property
    def serial(self) -> int:
        return self._serial

    @property
    def residue_type(self) -> str:
        return self._residue_type

    @property
    def one_letter(self) -> str:
        return three_to_one(self._residue_type)

    @property
    def sec_struct(self) -> Optional[SecStrucElement]:
        """The referenced element, or None if unset or no longer alive"""
        if self._sec_struct_ref is None:
            return None
        return self._sec_struct_ref()

    def set_sec_struct(self, element: SecStrucElement) -> None:
        """Set the secondary structure reference; it can only be set once"""
        current = self.sec_struct
        if current is element:
            return
        if current is not None:
            raise ValidationError(
                f"Secondary structure of residue {self._serial} is already set",
                {'serial': self._serial, 'current': str(current), 'new': str(element)}
            )
        self._sec_struct_ref = weakref.ref(element)

    def copy(self) -> 'ResidueNode':
        """Copy the node, keeping the reference to the same secondary structure element"""
        return ResidueNode(self._serial, self._residue_type, self.sec_struct)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResidueNode):
            return NotImplemented
        return self._serial == other._serial and self._residue_type == other._residue_type

    def __hash__(self) -> int:
        return hash((self._serial, self._residue_type))

    def __repr__(self) -> str:
        return f"ResidueNode({self._serial}, {self._residue_type!r})"


@dataclass
class ContactEdge:
    """A contact between two residues

    weight is an atom contact count for multi-atom contact types, 1.0 for
    single-atom types and a fraction for averaged graphs. voters is only set
    on averaged edges.
    """
    weight: float = 1.0
    distance: float = math.nan
    voters: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if self.weight < 0:
            raise InvalidEdgeError(f"Edge weight must be >= 0, got {self.weight}")
        if self.distance < 0:
            raise InvalidEdgeError(f"Edge distance must be >= 0, got {self.distance}")
        if self.voters is not None:
            self.voters = frozenset(self.voters)

    @property
    def is_averaged(self) -> bool:
        return self.voters is not None

    def copy(self) -> 'ContactEdge':
        return replace(self)


class GraphComparison(NamedTuple):
    """Edge partition of two graphs over the same sequence"""
    common: 'ResidueInteractionGraph'
    only_this: 'ResidueInteractionGraph'
    only_other: 'ResidueInteractionGraph'


class ResidueInteractionGraph:
    """Residue Interaction Graph of a single protein chain"""

    def __init__(self, sequence: str = "", contact_type: str = DEFAULT_CONTACT_TYPE,
                 cutoff: float = DEFAULT_CUTOFF, directed: Optional[bool] = None,
                 populate: bool = True):
        """Create a graph over a sequence

        Args:
            sequence: One-letter sequence; nodes 1..len(sequence) are created
                when populate is True
            contact_type: Contact type, e.g. 'Ca', 'Cb' or 'BB/SC'
            cutoff: Distance cutoff used to detect contacts
            directed: Directedness; by default contact types containing '/'
                are directed
            populate: Create one node per sequence position
        """
        if cutoff < 0:
            raise ValidationError(f"Distance cutoff must be >= 0, got {cutoff}")

        self.sequence = sequence
        self.contact_type = contact_type
        self.cutoff = float(cutoff)
        self.directed = ('/' in contact_type) if directed is None else directed

        # descriptive metadata carried by the graph file format
        self.pdb_code: Optional[str] = None
        self.pdb_chain_code: Optional[str] = None
        self.chain_code: Optional[str] = None
        self.model: int = 1

        self._nodes: Dict[int, ResidueNode] = {}
        self._edges: Dict[EdgeKey, ContactEdge] = {}
        self._out: Dict[int, Set[int]] = {}
        self._in: Dict[int, Set[int]] = {}
        # nodes only hold weak references, the graph keeps the elements alive
        self._sec_structure: List[SecStrucElement] = []

        if populate:
            for serial, letter in enumerate(sequence, start=1):
                self._insert_node(ResidueNode(serial, one_to_three(letter)))

    @classmethod
    def from_contacts(cls, sequence: str,
                      contacts: Iterable[Tuple],
                      residue_types: Optional[Dict[int, str]] = None,
                      contact_type: str = DEFAULT_CONTACT_TYPE,
                      cutoff: float = DEFAULT_CUTOFF,
                      directed: Optional[bool] = None) -> 'ResidueInteractionGraph':
        """Build a graph from a populated node and contact set

        Args:
            sequence: Full sequence of the chain
            contacts: (i, j), (i, j, weight) or (i, j, ContactEdge) tuples
            residue_types: Observed residues as serial -> three-letter code;
                all sequence positions are observed when omitted
            contact_type: Contact type
            cutoff: Distance cutoff
            directed: Directedness (see __init__)

        Returns:
            New graph
        """
        graph = cls(sequence, contact_type, cutoff, directed, populate=residue_types is None)
        if residue_types is not None:
            for serial in sorted(residue_types):
                if serial > len(sequence):
                    raise InvalidNodeError(
                        f"Residue serial {serial} is beyond sequence length {len(sequence)}",
                        {'serial': serial}
                    )
                graph._insert_node(ResidueNode(serial, residue_types[serial]))

        for contact in contacts:
            i, j = contact[0], contact[1]
            edge = None
            if len(contact) > 2:
                edge = contact[2] if isinstance(contact[2], ContactEdge) else ContactEdge(weight=float(contact[2]))
            graph.add_edge(i, j, edge)
        return graph

    # -- nodes -------------------------------------------------------------

    def _insert_node(self, node: ResidueNode) -> None:
        if node.serial in self._nodes:
            raise InvalidNodeError(f"Duplicate residue serial {node.serial}", {'serial': node.serial})
        needs_sort = bool(self._nodes) and node.serial < next(reversed(self._nodes))
        self._nodes[node.serial] = node
        self._out[node.serial] = set()
        self._in[node.serial] = set()
        if needs_sort:
            self._nodes = dict(sorted(self._nodes.items()))
        if node.sec_struct is not None:
            self._hold(node.sec_struct)

    def _hold(self, element: SecStrucElement) -> None:
        if not any(element is held for held in self._sec_structure):
            self._sec_structure.append(element)

    @property
    def full_length(self) -> int:
        return len(self.sequence)

    @property
    def obs_length(self) -> int:
        return len(self._nodes)

    @property
    def serials(self) -> List[int]:
        return list(self._nodes)

    @property
    def first_serial(self) -> int:
        if not self._nodes:
            raise InvalidNodeError("Graph has no nodes")
        return next(iter(self._nodes))

    @property
    def last_serial(self) -> int:
        if not self._nodes:
            raise InvalidNodeError("Graph has no nodes")
        return next(reversed(self._nodes))

    def nodes(self) -> Iterator[ResidueNode]:
        return iter(self._nodes.values())

    def has_node(self, serial: int) -> bool:
        return serial in self._nodes

    def get_node(self, serial: int) -> Optional[ResidueNode]:
        return self._nodes.get(serial)

    def _require_node(self, serial: int) -> ResidueNode:
        node = self._nodes.get(serial)
        if node is None:
            raise InvalidNodeError(f"No residue with serial {serial} in graph", {'serial': serial})
        return node

    @property
    def secondary_structure(self) -> List[SecStrucElement]:
        """Distinct secondary structure elements referenced by the nodes, in residue order"""
        elements = []
        seen = set()
        for node in self._nodes.values():
            element = node.sec_struct
            if element is not None and id(element) not in seen:
                seen.add(id(element))
                elements.append(element)
        return elements

    def assign_secondary_structure(self, elements: Iterable[SecStrucElement]) -> None:
        """Point every observed node covered by an element at that element

        The graph keeps the assigned elements alive.
        """
        for element in elements:
            self._hold(element)
            for serial in range(element.start, element.end + 1):
                node = self._nodes.get(serial)
                if node is not None:
                    node.set_sec_struct(element)

    # -- edges -------------------------------------------------------------

    def _key(self, i: int, j: int) -> EdgeKey:
        if self.directed or i < j:
            return (i, j)
        return (j, i)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def add_edge(self, i: int, j: int, edge: Optional[ContactEdge] = None) -> bool:
        """Add a contact between residues i and j

        Args:
            i: First residue serial (source when directed)
            j: Second residue serial
            edge: Edge properties, a default unit-weight edge if omitted

        Returns:
            True if the edge was added, False if it already existed

        Raises:
            InvalidNodeError: If either serial has no node
            InvalidEdgeError: For self-loops
        """
        self._require_node(i)
        self._require_node(j)
        if i == j:
            raise InvalidEdgeError(f"Self-loop on residue {i} not allowed", {'serial': i})

        key = self._key(i, j)
        if key in self._edges:
            return False

        self._edges[key] = edge if edge is not None else ContactEdge()
        self._out[key[0]].add(key[1])
        self._in[key[1]].add(key[0])
        return True

    def remove_edge(self, i: int, j: int) -> bool:
        key = self._key(i, j)
        if key not in self._edges:
            return False
        del self._edges[key]
        self._out[key[0]].discard(key[1])
        self._in[key[1]].discard(key[0])
        return True

    def remove_all_edges(self) -> None:
        self._edges.clear()
        for serial in self._nodes:
            self._out[serial].clear()
            self._in[serial].clear()

    def find_edge(self, i: int, j: int) -> Optional[ContactEdge]:
        """Edge between i and j; order matters for directed graphs"""
        return self._edges.get(self._key(i, j))

    def contains_edge(self, i: int, j: int) -> bool:
        return self._key(i, j) in self._edges

    def edges(self) -> Iterator[Tuple[int, int, ContactEdge]]:
        """All edges as (i, j, edge) in ascending (i, j) order"""
        for key in sorted(self._edges):
            yield key[0], key[1], self._edges[key]

    def edge_keys(self) -> List[EdgeKey]:
        return sorted(self._edges)

    @staticmethod
    def get_contact_range(i: int, j: int) -> int:
        """Sequence separation of a contact"""
        return abs(i - j)

    def neighbor_serials(self, serial: int) -> List[int]:
        """Serials of all residues in contact with serial (both directions when directed)"""
        self._require_node(serial)
        return sorted(self._out[serial] | self._in[serial])

    def get_neighbors(self, serial: int) -> Set[ResidueNode]:
        return {self._nodes[s] for s in self.neighbor_serials(serial)}

    def get_ordered_neighbors(self, serial: int) -> List[ResidueNode]:
        return [self._nodes[s] for s in self.neighbor_serials(serial)]

    def degree(self, serial: int) -> int:
        return len(self.neighbor_serials(serial))

    # -- derived graphs ----------------------------------------------------

    def _copy_properties(self) -> 'ResidueInteractionGraph':
        """Edgeless copy with the same nodes and properties"""
        graph = ResidueInteractionGraph(self.sequence, self.contact_type, self.cutoff,
                                        self.directed, populate=False)
        graph.pdb_code = self.pdb_code
        graph.pdb_chain_code = self.pdb_chain_code
        graph.chain_code = self.chain_code
        graph.model = self.model
        for node in self.nodes():
            graph._insert_node(node.copy())
        return graph

    def copy(self) -> 'ResidueInteractionGraph':
        """Deep copy; secondary structure references still point at the same elements"""
        graph = self._copy_properties()
        for i, j, edge in self.edges():
            graph.add_edge(i, j, edge.copy())
        return graph

    def compare(self, other: 'ResidueInteractionGraph') -> GraphComparison:
        """Partition edges into common, only in this graph and only in other

        common and only_this keep this graph's properties, only_other keeps
        other's.

        Raises:
            SequenceMismatchError: If the full lengths differ
        """
        if self.full_length != other.full_length:
            raise SequenceMismatchError(
                "Sequence of 2 graphs to compare differ, can't compare them",
                {'this_length': self.full_length, 'other_length': other.full_length}
            )

        common = self.copy()
        only_this = self.copy()
        only_other = other.copy()

        for i, j, _ in self.edges():
            if other.contains_edge(i, j):
                only_this.remove_edge(i, j)
                only_other.remove_edge(i, j)
            else:
                common.remove_edge(i, j)

        return GraphComparison(common, only_this, only_other)

    def common_edges_count(self, other: 'ResidueInteractionGraph') -> int:
        return sum(1 for i, j, _ in self.edges() if other.contains_edge(i, j))

    def complement(self) -> 'ResidueInteractionGraph':
        """Graph with an edge for every observed pair that has none here"""
        graph = self._copy_properties()
        serials = self.serials
        for i in serials:
            for j in serials:
                if i == j or (not self.directed and j < i):
                    continue
                if not self.contains_edge(i, j):
                    graph.add_edge(i, j)
        return graph

    # -- weights -----------------------------------------------------------

    def filter_by_min_weight(self, min_weight: float) -> None:
        """Remove edges with weight below min_weight"""
        for i, j, edge in list(self.edges()):
            if edge.weight < min_weight:
                self.remove_edge(i, j)

    def discretize_by_weight_cutoff(self, weight_cutoff: float) -> None:
        """Keep edges with weight >= weight_cutoff, setting their weight to 1"""
        for i, j, edge in list(self.edges()):
            if edge.weight < weight_cutoff:
                self.remove_edge(i, j)
            else:
                edge.weight = 1.0

    def discretize_by_num_contacts(self, top: int) -> None:
        """Keep the top heaviest edges with weight 1; ties broken by (i, j)"""
        ranked = sorted(self.edges(), key=lambda item: (-item[2].weight, item[0], item[1]))
        for rank, (i, j, edge) in enumerate(ranked):
            if rank < top:
                edge.weight = 1.0
            else:
                self.remove_edge(i, j)

    def has_weighted_edges(self) -> bool:
        """True if at least one edge weight lies strictly between 0 and 1"""
        return any(0 < edge.weight < 1 for edge in self._edges.values())

    def contact_order(self) -> float:
        """Sum of contact ranges divided by (observed residues * edges)"""
        if not self._edges or not self._nodes:
            return 0.0
        range_sum = sum(self.get_contact_range(i, j) for i, j in self._edges)
        return range_sum / (self.obs_length * self.edge_count)

    # -- sampling ----------------------------------------------------------

    def random_subset(self, fraction: float, seed: Optional[int] = None) -> 'ResidueInteractionGraph':
        """Copy keeping a random fraction of the edges (as unit-weight edges)"""
        keys = self.edge_keys()
        num_sampled = int(len(keys) * fraction)
        rng = np.random.default_rng(seed)
        chosen = sorted(rng.choice(len(keys), size=num_sampled, replace=False)) if num_sampled else []

        graph = self._copy_properties()
        for index in chosen:
            graph.add_edge(*keys[index])
        return graph

    def random_noise(self, fraction: float, seed: Optional[int] = None) -> 'ResidueInteractionGraph':
        """Copy with a fraction (relative to the edge count) of random extra contacts"""
        graph = self.copy()
        serials = self.serials
        n = len(serials)
        max_edges = n * (n - 1) if self.directed else n * (n - 1) // 2
        num_to_add = min(int(self.edge_count * fraction), max_edges - self.edge_count)

        rng = np.random.default_rng(seed)
        added = 0
        while added < num_to_add:
            i, j = (serials[k] for k in rng.integers(0, n, size=2))
            if i == j:
                continue
            if graph.add_edge(i, j):
                added += 1

        logger.debug(f"Added {added} noise contacts to graph with {self.edge_count} contacts")
        return graph

    def __repr__(self) -> str:
        return (f"ResidueInteractionGraph(length={self.full_length}, observed={self.obs_length}, "
                f"edges={self.edge_count}, contact_type={self.contact_type!r}, "
                f"cutoff={self.cutoff}, directed={self.directed})")
