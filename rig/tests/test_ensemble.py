#!/usr/bin/env python3
"""
Tests for same-sequence graph ensembles
"""

import pytest

from rig.config import ConfigManager
from rig.core.ensemble import RIGEnsemble
from rig.exceptions import GraphFileFormatError, ValidationError
from rig.models.graph import ResidueInteractionGraph
from rig.utils.graph_io import write_casp_rr_file, write_graph_file


@pytest.fixture
def model_graphs(sequence10):
    """Three models of one chain"""
    return [
        ResidueInteractionGraph.from_contacts(sequence10, [(1, 5), (2, 6)]),
        ResidueInteractionGraph.from_contacts(sequence10, [(1, 5), (3, 7)]),
        ResidueInteractionGraph.from_contacts(sequence10, [(1, 5), (2, 6), (4, 9)]),
    ]


class TestAddGraph:
    """Test adding graphs to an ensemble"""

    def test_add(self, model_graphs, sequence10):
        ensemble = RIGEnsemble()
        for graph in model_graphs:
            assert ensemble.add_graph(graph)
        assert len(ensemble) == 3
        assert ensemble.sequence == sequence10
        assert ensemble[1] is model_graphs[1]
        assert ensemble.names == ["001", "002", "003"]

    def test_contact_type_mismatch(self, sequence10):
        with pytest.raises(ValidationError):
            RIGEnsemble("Ca").add_graph(ResidueInteractionGraph(sequence10, "Cb"))

    def test_cutoff_mismatch(self, sequence10):
        with pytest.raises(ValidationError):
            RIGEnsemble("Cb", 6.0).add_graph(ResidueInteractionGraph(sequence10, "Cb", 8.0))

    def test_sequence_mismatch(self, model_graphs):
        ensemble = RIGEnsemble()
        ensemble.add_graph(model_graphs[0])
        with pytest.raises(ValidationError):
            ensemble.add_graph(ResidueInteractionGraph("ACDEF"))

    def test_empty_sequence(self):
        with pytest.raises(ValidationError):
            RIGEnsemble().sequence

    def test_only_first_models(self, model_graphs):
        ensemble = RIGEnsemble(only_first_models=True)
        model_graphs[1].model = 2
        added = [ensemble.add_graph(graph) for graph in model_graphs]
        assert added == [True, False, True]
        assert len(ensemble) == 2

    def test_load_from_graph_map(self, model_graphs):
        ensemble = RIGEnsemble()
        graphs = {"model_c": model_graphs[2], "model_a": model_graphs[0]}
        assert ensemble.load_from_graph_map(graphs) == 2
        assert ensemble.names == ["model_a", "model_c"]
        assert ensemble[0] is model_graphs[0]

    def test_from_config(self, monkeypatch):
        monkeypatch.setenv("RIG_GRAPH__CONTACT_TYPE", "Ca")
        monkeypatch.setenv("RIG_GRAPH__CUTOFF", "6.5")
        ensemble = RIGEnsemble.from_config(ConfigManager())
        assert ensemble.contact_type == "Ca"
        assert ensemble.cutoff == 6.5
        assert ensemble.threshold == 0.5

    def test_threshold_from_config(self, model_graphs, monkeypatch):
        monkeypatch.setenv("RIG_CONSENSUS__THRESHOLD", "1.0")
        ensemble = RIGEnsemble.from_config(ConfigManager())
        ensemble.load_from_graph_map({f"m{i}": g for i, g in enumerate(model_graphs)})
        assert ensemble.consensus_graph().edge_keys() == [(1, 5)]


class TestEnsembleGraphs:
    """Test average and consensus graphs of an ensemble"""

    def test_average_graph(self, model_graphs):
        ensemble = RIGEnsemble()
        ensemble.load_from_graph_map({f"m{i}": g for i, g in enumerate(model_graphs)})
        average = ensemble.average_graph()

        assert average.edge_keys() == [(1, 5), (2, 6), (3, 7), (4, 9)]
        assert average.find_edge(1, 5).weight == 1.0
        assert average.find_edge(2, 6).weight == pytest.approx(2 / 3)
        assert average.find_edge(2, 6).voters == frozenset({"000", "002"})

    def test_consensus_graph(self, model_graphs):
        ensemble = RIGEnsemble()
        ensemble.load_from_graph_map({f"m{i}": g for i, g in enumerate(model_graphs)})
        assert ensemble.consensus_graph(0.5).edge_keys() == [(1, 5), (2, 6)]
        assert ensemble.consensus_graph(1.0).edge_keys() == [(1, 5)]
        assert ensemble.consensus_graph().edge_keys() == [(1, 5), (2, 6)]


@pytest.mark.integration
class TestLoadFiles:
    """Test loading ensembles from contact files"""

    @pytest.fixture
    def contact_dir(self, tmp_path, model_graphs):
        directory = tmp_path / "models"
        directory.mkdir()
        write_graph_file(model_graphs[0], directory / "a.cm")
        write_graph_file(model_graphs[1], directory / "b.cm")
        write_casp_rr_file(model_graphs[2], directory / "c.rr")
        return directory

    def test_load_files(self, contact_dir):
        ensemble = RIGEnsemble()
        paths = [str(contact_dir / name) for name in ("a.cm", "c.rr")]
        assert ensemble.load_files(paths) == 2
        assert ensemble.names == ["a.cm", "c.rr"]
        assert ensemble[1].edge_keys() == [(1, 5), (2, 6), (4, 9)]

    def test_load_from_directory(self, contact_dir):
        ensemble = RIGEnsemble()
        assert ensemble.load_from_directory(str(contact_dir)) == 3
        assert ensemble.names == ["a.cm", "b.cm", "c.rr"]
        assert ensemble.consensus_graph(1.0).edge_keys() == [(1, 5)]

    def test_load_from_list_file(self, contact_dir):
        list_file = contact_dir / "models.list"
        list_file.write_text("b.cm\n\n" + str(contact_dir / "a.cm") + "\n")
        ensemble = RIGEnsemble()
        assert ensemble.load_from_list_file(str(list_file)) == 2
        assert ensemble.names == ["b.cm", "a.cm"]

    def test_not_a_directory(self, contact_dir):
        with pytest.raises(NotADirectoryError):
            RIGEnsemble().load_from_directory(str(contact_dir / "a.cm"))

    def test_unknown_file_type(self, contact_dir):
        other = contact_dir / "notes.txt"
        other.write_text("not a contact file\n")
        with pytest.raises(GraphFileFormatError):
            RIGEnsemble().load_files([str(other)])

    def test_mismatching_file(self, contact_dir):
        other = contact_dir / "other.cm"
        write_graph_file(ResidueInteractionGraph("ACDEF"), other)
        ensemble = RIGEnsemble()
        ensemble.load_files([str(contact_dir / "a.cm")])
        with pytest.raises(ValidationError):
            ensemble.load_files([str(other)])
