#!/usr/bin/env python3
"""
Graph file I/O

Three text formats are supported:
- the contact graph file (#CMVIEW GRAPH FILE header block, one i/j/weight row per contact)
- CASP RR contact prediction files
- average graphs with one voter column per template
"""
import logging
import math
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from rig.config import ConfigManager, DEFAULT_CONFIG
from rig.exceptions import GraphFileFormatError
from rig.models.graph import DEFAULT_CONTACT_TYPE, DEFAULT_CUTOFF, ContactEdge, ResidueInteractionGraph

logger = logging.getLogger("rig.io")

PathLike = Union[str, os.PathLike]

GRAPH_FILE_FORMAT_VERSION = "1.0"
GRAPH_FILE_HEADER = f"#CMVIEW GRAPH FILE ver: {GRAPH_FILE_FORMAT_VERSION}"

_VERSION_RE = re.compile(r"^#(?:AGLAPPE|CMVIEW|OWL).*ver: (\d\.\d)")
_SEQUENCE_RE = re.compile(r"^#SEQUENCE:\s*(\w+)$")
_PDB_RE = re.compile(r"^#PDB:\s*(\w+)")
_PDB_CHAIN_RE = re.compile(r"^#PDB CHAIN CODE:\s*(\w+)")
_CHAIN_RE = re.compile(r"^#CHAIN:\s*(\w)")
_MODEL_RE = re.compile(r"^#MODEL:\s*(\d+)")
_CT_RE = re.compile(r"^#CT:\s*([a-zA-Z/]+)")
_CUTOFF_RE = re.compile(r"^#CUTOFF:\s*(\d+\.\d+)")
_CONTACT_RE = re.compile(r"^\s*(\d+)\s+(\d+)(?:\s+(\d+(?:\.\d+)?))?\s*$")


def write_graph_file(graph: ResidueInteractionGraph, path: PathLike) -> None:
    """Write a graph in contact graph file format, contacts in ascending order"""
    with open(path, 'w') as f:
        f.write(f"{GRAPH_FILE_HEADER}\n")
        f.write(f"#SEQUENCE: {graph.sequence}\n")
        f.write(f"#PDB: {graph.pdb_code or ''}\n")
        f.write(f"#PDB CHAIN CODE: {graph.pdb_chain_code or ''}\n")
        f.write(f"#CHAIN: {graph.chain_code or ''}\n")
        f.write(f"#MODEL: {graph.model or 1}\n")
        f.write(f"#CT: {graph.contact_type}\n")
        f.write(f"#CUTOFF: {graph.cutoff}\n")
        for i, j, edge in graph.edges():
            f.write(f"{i}\t{j}\t{edge.weight:6.3f}\n")
    logger.debug(f"Wrote {graph.edge_count} contacts to {path}")


def read_graph_file(path: PathLike) -> ResidueInteractionGraph:
    """Read a contact graph file

    Contact types containing '/' are read as directed graphs.

    Raises:
        GraphFileFormatError: On a missing or unsupported version header, a
            missing sequence or a contact beyond the sequence
    """
    header = {'pdb_code': None, 'pdb_chain_code': None, 'chain_code': None, 'model': 1,
              'contact_type': DEFAULT_CONTACT_TYPE, 'cutoff': DEFAULT_CUTOFF}
    sequence = None
    contacts = {}

    with open(path) as f:
        for line_number, line in enumerate(f, start=1):
            line = line.rstrip('\n')
            m = _VERSION_RE.match(line)
            if m:
                if m.group(1) != GRAPH_FILE_FORMAT_VERSION:
                    raise GraphFileFormatError(
                        f"Contact map file {path} has a wrong file format version. Supported version is "
                        f"{GRAPH_FILE_FORMAT_VERSION} and found version was {m.group(1)}",
                        {'path': str(path), 'version': m.group(1)}
                    )
                continue
            if line_number == 1:
                raise GraphFileFormatError(f"{path} is not a valid contact map file", {'path': str(path)})

            if line.startswith('#'):
                m = _SEQUENCE_RE.match(line)
                if m:
                    sequence = m.group(1)
                elif _PDB_CHAIN_RE.match(line):
                    header['pdb_chain_code'] = _PDB_CHAIN_RE.match(line).group(1)
                elif _PDB_RE.match(line):
                    header['pdb_code'] = _PDB_RE.match(line).group(1)
                elif _CHAIN_RE.match(line):
                    header['chain_code'] = _CHAIN_RE.match(line).group(1)
                elif _MODEL_RE.match(line):
                    header['model'] = int(_MODEL_RE.match(line).group(1))
                elif _CT_RE.match(line):
                    header['contact_type'] = _CT_RE.match(line).group(1)
                elif _CUTOFF_RE.match(line):
                    header['cutoff'] = float(_CUTOFF_RE.match(line).group(1))
                continue

            m = _CONTACT_RE.match(line)
            if m:
                weight = float(m.group(3)) if m.group(3) is not None else 1.0
                contacts[(int(m.group(1)), int(m.group(2)))] = weight

    if sequence is None:
        raise GraphFileFormatError(f"No sequence present in contact map file {path}", {'path': str(path)})

    for i, j in contacts:
        for serial in (i, j):
            if serial > len(sequence):
                raise GraphFileFormatError(
                    f"Residue serial {serial} found in contacts of {path} is bigger than length of sequence",
                    {'path': str(path), 'serial': serial}
                )

    graph = ResidueInteractionGraph(sequence, header['contact_type'], header['cutoff'])
    graph.pdb_code = header['pdb_code']
    graph.pdb_chain_code = header['pdb_chain_code']
    graph.chain_code = header['chain_code']
    graph.model = header['model']
    for (i, j), weight in sorted(contacts.items()):
        graph.add_edge(i, j, ContactEdge(weight=weight))

    logger.debug(f"Read {graph.edge_count} contacts from {path}")
    return graph


def write_average_graph_with_voters(graph: ResidueInteractionGraph,
                                    tags: Sequence[str], path: PathLike) -> None:
    """Write an averaged graph with one 1/0 column per template tag

    Raises:
        GraphFileFormatError: If an edge carries no voters
    """
    with open(path, 'w') as f:
        f.write("#i\tj\tweight" + "".join(f"\t{tag}" for tag in tags) + "\n")
        for i, j, edge in graph.edges():
            if edge.voters is None:
                raise GraphFileFormatError(f"Contact {i}-{j} is not an averaged contact",
                                           {'contact': (i, j)})
            columns = "".join("\t1" if tag in edge.voters else "\t0" for tag in tags)
            f.write(f"{i}\t{j}\t{edge.weight:6.3f}{columns}\n")


# -- CASP RR ---------------------------------------------------------------

RR_DEFAULT_MIN_DIST = 0.0
RR_MAX_CHARS_PER_SEQ_LINE = 50

_RR_HEADER_RE = re.compile(r"^PFRMAT\s+RR$")
_RR_TARGET_RE = re.compile(r"^TARGET\s+T(\d{4})$")
_RR_AUTHOR_RE = re.compile(r"^AUTHOR (.*)$")
_RR_REMARK_RE = re.compile(r"^REMARK (.*)$")
_RR_METHOD_RE = re.compile(r"^METHOD (.*)$")
_RR_MODEL_RE = re.compile(r"^MODEL (.*)$")
_RR_SEQUENCE_RE = re.compile(r"^([A-Z ]+)$")
_RR_CONTACT_RE = re.compile(
    r"^\s*(\d+)\s+(\d+)\s+(\d+(?:\.\d*)?)\s+(\d+(?:\.\d*)?)\s+(\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*$"
)


@dataclass
class RRContact:
    i: int
    j: int
    min_dist: float
    max_dist: float
    weight: float

    def __str__(self) -> str:
        return f"{self.i:3d} {self.j:3d} {self.min_dist:2.0f} {self.max_dist:2.0f} {self.weight:3.2f}"


@dataclass
class CaspRRData:
    """Contents of a CASP RR contact prediction file"""
    sequence: str
    target: int = 0
    model: int = 1
    author: Optional[str] = None
    methods: List[str] = field(default_factory=list)
    contacts: List[RRContact] = field(default_factory=list)

    def to_graph(self, contact_type: str = DEFAULT_CONTACT_TYPE,
                 cutoff: Optional[float] = None) -> ResidueInteractionGraph:
        """Undirected graph of the contacts; cutoff defaults to the largest max distance"""
        if cutoff is None:
            cutoff = max((c.max_dist for c in self.contacts), default=DEFAULT_CUTOFF)
        graph = ResidueInteractionGraph(self.sequence, contact_type, cutoff, directed=False)
        graph.model = self.model
        for c in self.contacts:
            graph.add_edge(c.i, c.j, ContactEdge(weight=c.weight))
        return graph


def write_casp_rr_file(graph: ResidueInteractionGraph, path: PathLike,
                       target: Optional[int] = None, model: Optional[int] = None,
                       author: Optional[str] = None, method: Optional[str] = None,
                       config: Optional[ConfigManager] = None) -> None:
    """Write a graph as a CASP RR prediction; max distance is the graph cutoff

    Args:
        target: Target number, defaults to io.casp_target
        model: Model number, defaults to io.casp_model
        config: Configuration to read the io defaults from
    """
    io_config = config.get_section('io') if config is not None else DEFAULT_CONFIG['io']
    if target is None:
        target = io_config.get('casp_target', DEFAULT_CONFIG['io']['casp_target'])
    if model is None:
        model = io_config.get('casp_model', DEFAULT_CONFIG['io']['casp_model'])
    with open(path, 'w') as f:
        f.write("PFRMAT RR\n")
        f.write(f"TARGET T{target:04d}\n")
        if author is not None:
            f.write(f"AUTHOR {author}\n")
        if method is not None:
            f.write(f"METHOD {method}\n")
        f.write(f"MODEL {model}\n")
        seq = graph.sequence
        for start in range(0, len(seq), RR_MAX_CHARS_PER_SEQ_LINE):
            f.write(seq[start:start + RR_MAX_CHARS_PER_SEQ_LINE] + "\n")
        for i, j, edge in graph.edges():
            f.write(f"{RRContact(i, j, RR_DEFAULT_MIN_DIST, graph.cutoff, edge.weight)}\n")
        f.write("END\n")
    logger.debug(f"Wrote {graph.edge_count} contacts to CASP RR file {path}")


def read_casp_rr_file(path: PathLike) -> CaspRRData:
    """Read a CASP RR file

    Raises:
        GraphFileFormatError: If an obligatory record is missing or out of order
    """
    with open(path) as f:
        lines = [line.strip() for line in f if line.strip()]

    def fail(expected: str, found: Optional[str]) -> GraphFileFormatError:
        return GraphFileFormatError(f"{expected} expected in {path}, found {found}",
                                    {'path': str(path), 'line': found})

    pos = 0

    def current() -> Optional[str]:
        return lines[pos] if pos < len(lines) else None

    def matches(regex) -> Optional[re.Match]:
        line = current()
        return regex.match(line) if line is not None else None

    if not matches(_RR_HEADER_RE):
        raise fail("PFRMAT RR", current())
    pos += 1

    m = matches(_RR_TARGET_RE)
    if not m:
        raise fail("TARGET", current())
    data = CaspRRData(sequence="", target=int(m.group(1)))
    pos += 1

    m = matches(_RR_AUTHOR_RE)
    if m:
        data.author = m.group(1)
        pos += 1
    while matches(_RR_REMARK_RE):
        pos += 1
    while matches(_RR_METHOD_RE):
        data.methods.append(matches(_RR_METHOD_RE).group(1))
        pos += 1

    m = matches(_RR_MODEL_RE)
    if not m:
        raise fail("MODEL", current())
    try:
        data.model = int(m.group(1).strip())
    except ValueError as e:
        raise fail("Model number", current()) from e
    pos += 1

    sequence_parts = []
    while current() != "END" and matches(_RR_SEQUENCE_RE):
        sequence_parts.append(matches(_RR_SEQUENCE_RE).group(1).replace(' ', ''))
        pos += 1
    if not sequence_parts:
        raise fail("Sequence", current())
    data.sequence = "".join(sequence_parts)

    while matches(_RR_CONTACT_RE):
        m = matches(_RR_CONTACT_RE)
        data.contacts.append(RRContact(int(m.group(1)), int(m.group(2)), float(m.group(3)),
                                       float(m.group(4)), float(m.group(5))))
        pos += 1

    if current() != "END":
        raise fail("END", current())

    for c in data.contacts:
        if (c.i == c.j or min(c.i, c.j) < 1 or max(c.i, c.j) > len(data.sequence)
                or math.isnan(c.weight)):
            raise GraphFileFormatError(f"Invalid contact {c.i} {c.j} in {path}",
                                       {'path': str(path), 'contact': (c.i, c.j)})

    logger.debug(f"Read {len(data.contacts)} contacts from CASP RR file {path}")
    return data


GRAPH_FILE = 'graph'
CASP_RR_FILE = 'casp_rr'


def guess_file_type(path: PathLike) -> Optional[str]:
    """Guess a contact file type (GRAPH_FILE or CASP_RR_FILE) from its first non-empty line"""
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if _VERSION_RE.match(line):
                return GRAPH_FILE
            if _RR_HEADER_RE.match(line):
                return CASP_RR_FILE
            return None
    return None
