#!/usr/bin/env python3
"""
Shared fixtures for the RIG toolkit tests

Small hand-checked graphs, alignments and template ensembles whose vote
tallies and scores can be worked out on paper.
"""

import logging
import os

import pytest

from rig.core.consensus import ConsensusBuilder
from rig.models.alignment import AlignmentIndex
from rig.models.graph import ResidueInteractionGraph

SEQUENCE_10 = "ACDEFGHIKL"


# Test markers
def pytest_configure(config):
    """Configure custom test markers"""
    config.addinivalue_line("markers", "integration: marks tests that read and write contact files")
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture(autouse=True)
def clean_rig_environment(monkeypatch):
    """Keep RIG_ environment overrides of the host out of the tests"""
    for key in list(os.environ):
        if key.startswith("RIG_"):
            monkeypatch.delenv(key)


@pytest.fixture
def sequence10():
    return SEQUENCE_10


@pytest.fixture
def simple_graph():
    """Undirected Cb graph over 10 residues with 4 contacts"""
    return ResidueInteractionGraph.from_contacts(
        SEQUENCE_10, [(1, 5), (2, 8), (3, 4), (6, 10)]
    )


@pytest.fixture
def directed_graph():
    """Directed BB/SC graph with contacts in both directions between 1 and 3"""
    return ResidueInteractionGraph.from_contacts(
        SEQUENCE_10, [(1, 3), (3, 1), (5, 2)], contact_type="BB/SC"
    )


@pytest.fixture
def motif_graph():
    """Residue 10 (LYS) in contact with 8 (ALA) and 12 (GLY)"""
    return ResidueInteractionGraph.from_contacts("MMMMMMMAMKMG", [(8, 10), (10, 12)])


@pytest.fixture
def filter_templates():
    """Five templates over one sequence with decreasing support

    t1-t3 share three contacts, t4 shares one of them plus two contacts
    only t5 also has, t5 has one contact nobody else has.
    """
    shared = [(1, 5), (2, 6), (3, 7)]
    return {
        "t1": ResidueInteractionGraph.from_contacts(SEQUENCE_10, shared),
        "t2": ResidueInteractionGraph.from_contacts(SEQUENCE_10, shared),
        "t3": ResidueInteractionGraph.from_contacts(SEQUENCE_10, shared),
        "t4": ResidueInteractionGraph.from_contacts(SEQUENCE_10, [(1, 5), (4, 8), (5, 9)]),
        "t5": ResidueInteractionGraph.from_contacts(SEQUENCE_10, [(4, 8), (5, 9), (6, 10)]),
    }


@pytest.fixture
def filter_builder(filter_templates):
    """Builder over filter_templates with a gapless alignment"""
    sequences = {"target": SEQUENCE_10}
    sequences.update({tag: SEQUENCE_10 for tag in filter_templates})
    return ConsensusBuilder(AlignmentIndex.trivial(sequences), filter_templates, "target")


@pytest.fixture
def gapped_alignment():
    """Target with a gap at column 3, template tB with a gap at column 2"""
    return AlignmentIndex({
        "target": "AC-DEF",
        "tA": "ACGDEF",
        "tB": "A-GDEF",
    })


@pytest.fixture
def gapped_templates():
    """Templates of gapped_alignment

    tA: (1,4) -> cols 1,4   (3,6) -> cols 3,6   (2,5) -> cols 2,5
    tB: (1,3) -> cols 1,4   (2,5) -> cols 3,6
    """
    return {
        "tA": ResidueInteractionGraph.from_contacts("ACGDEF", [(1, 4), (3, 6), (2, 5)]),
        "tB": ResidueInteractionGraph.from_contacts("AGDEF", [(1, 3), (2, 5)]),
    }


@pytest.fixture
def restore_root_logging():
    """Put the root logger back after a test reconfigures it"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
