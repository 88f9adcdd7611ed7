#!/usr/bin/env python3
"""
Tests for contact prediction evaluation
"""

import math

import pytest

from rig.config import ConfigManager
from rig.core.evaluator import PredictionEvaluator
from rig.exceptions import IncompatibleGraphError, ValidationError
from rig.models.evaluation import PredEval
from rig.models.graph import ResidueInteractionGraph


class TestTotalCells:
    """Test the number of residue pairs at a minimum separation"""

    def test_undirected_length_50(self):
        assert PredictionEvaluator.total_cells(50, 4, directed=False) == 1081

    def test_directed_length_50(self):
        assert PredictionEvaluator.total_cells(50, 4, directed=True) == 2162

    def test_separation_beyond_length(self):
        assert PredictionEvaluator.total_cells(3, 5, directed=False) == 0


class TestEvaluate:
    """Test evaluation of predicted against reference graphs"""

    def test_identity(self, simple_graph):
        """A graph evaluated against itself has no false predictions"""
        result = PredictionEvaluator().evaluate(simple_graph, simple_graph)

        assert result.fp == 0
        assert result.fn == 0
        assert result.tp == result.predicted == result.original == 4
        assert result.total_cells == 45
        assert result.tn == result.total_cells - result.tp
        assert result.accuracy == 1.0
        assert result.coverage == 1.0

    def test_min_seq_sep_excludes_short_range(self, simple_graph):
        result = PredictionEvaluator().evaluate(simple_graph, simple_graph, min_seq_sep=2)
        assert result.predicted == 3
        assert result.total_cells == 36
        assert result.tn == 33
        assert result.min_seq_sep == 2

    def test_partial_prediction(self, sequence10):
        predicted = ResidueInteractionGraph.from_contacts(sequence10, [(1, 5), (2, 6)])
        reference = ResidueInteractionGraph.from_contacts(sequence10, [(1, 5), (3, 7), (4, 9)])
        result = PredictionEvaluator().evaluate(predicted, reference)

        assert (result.tp, result.fp, result.fn, result.tn) == (1, 1, 2, 41)
        assert result.predicted == 2
        assert result.original == 3
        assert result.accuracy == pytest.approx(0.5)
        assert result.coverage == pytest.approx(1 / 3)
        assert result.sensitivity == pytest.approx(1 / 3)
        assert result.specificity == pytest.approx(41 / 42)

    def test_reversed_contact_matches_when_undirected(self, sequence10):
        predicted = ResidueInteractionGraph.from_contacts(sequence10, [(6, 2)])
        reference = ResidueInteractionGraph.from_contacts(sequence10, [(2, 6)])
        assert PredictionEvaluator().evaluate(predicted, reference).tp == 1

    def test_directed_contacts_are_ordered(self, sequence10):
        predicted = ResidueInteractionGraph.from_contacts(sequence10, [(2, 1)], contact_type="BB/SC")
        reference = ResidueInteractionGraph.from_contacts(sequence10, [(1, 2)], contact_type="BB/SC")
        result = PredictionEvaluator().evaluate(predicted, reference)

        assert (result.tp, result.fp, result.fn) == (0, 1, 1)
        assert result.total_cells == 90

    def test_different_lengths(self, simple_graph):
        with pytest.raises(IncompatibleGraphError):
            PredictionEvaluator().evaluate(simple_graph, ResidueInteractionGraph("ACD"))

    def test_different_directedness(self, sequence10, simple_graph):
        directed = ResidueInteractionGraph(sequence10, "BB/SC")
        with pytest.raises(IncompatibleGraphError):
            PredictionEvaluator().evaluate(simple_graph, directed)

    def test_contact_on_unobserved_residue(self, sequence10):
        predicted = ResidueInteractionGraph.from_contacts(sequence10, [(1, 5)])
        reference = ResidueInteractionGraph.from_contacts(
            sequence10, [], residue_types={1: "ALA", 2: "CYS", 3: "ASP"}
        )
        with pytest.raises(IncompatibleGraphError) as exc_info:
            PredictionEvaluator().evaluate(predicted, reference)
        assert exc_info.value.details['serial'] == 5

    def test_invalid_min_seq_sep(self, simple_graph):
        with pytest.raises(ValidationError):
            PredictionEvaluator(min_seq_sep=0)
        with pytest.raises(ValidationError):
            PredictionEvaluator().evaluate(simple_graph, simple_graph, min_seq_sep=0)

    def test_from_config(self, monkeypatch):
        monkeypatch.setenv("RIG_EVALUATION__MIN_SEQ_SEP", "3")
        assert PredictionEvaluator.from_config(ConfigManager()).min_seq_sep == 3


class TestPredEval:
    """Test derived metrics and their special cases"""

    def test_nothing_predicted(self):
        result = PredEval(tp=0, fp=0, tn=40, fn=5, predicted=0, original=5, total_cells=45)
        assert result.accuracy == 1.0
        assert result.coverage == 0.0

    def test_empty_reference(self):
        result = PredEval(tp=0, fp=3, tn=42, fn=0, predicted=3, original=0, total_cells=45)
        assert result.accuracy == 0.0
        assert result.coverage == 1.0
        assert math.isnan(result.sensitivity)

    def test_both_empty(self):
        result = PredEval(tp=0, fp=0, tn=0, fn=0, predicted=0, original=0, total_cells=0)
        assert result.accuracy == 1.0
        assert result.coverage == 1.0
        assert math.isnan(result.specificity)

    def test_as_dict(self):
        result = PredEval(tp=2, fp=2, tn=40, fn=1, predicted=4, original=3, total_cells=45)
        data = result.as_dict()
        assert data['tp'] == 2
        assert data['accuracy'] == pytest.approx(0.5)
        assert data['coverage'] == pytest.approx(2 / 3)
        assert "TP=2" in result.summary()

    def test_frozen(self):
        result = PredEval(tp=0, fp=0, tn=0, fn=0, predicted=0, original=0, total_cells=0)
        with pytest.raises(AttributeError):
            result.tp = 1
