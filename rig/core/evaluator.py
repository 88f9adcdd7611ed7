# rig/core/evaluator.py
"""
Evaluation of a predicted contact graph against a reference graph
"""

import logging
from typing import Optional

from rig.config import ConfigManager
from rig.exceptions import IncompatibleGraphError, ValidationError
from rig.models.evaluation import PredEval
from rig.models.graph import ResidueInteractionGraph


class PredictionEvaluator:
    """Computes confusion matrices of predicted vs reference graphs"""

    def __init__(self, min_seq_sep: int = 1):
        if min_seq_sep < 1:
            raise ValidationError(f"Minimum sequence separation must be >= 1, got {min_seq_sep}")
        self.min_seq_sep = min_seq_sep
        self.logger = logging.getLogger("rig.evaluator")

    @classmethod
    def from_config(cls, config: ConfigManager) -> 'PredictionEvaluator':
        return cls(min_seq_sep=config.get('evaluation.min_seq_sep', 1))

    @staticmethod
    def total_cells(length: int, min_seq_sep: int, directed: bool) -> int:
        """Number of residue pairs with sequence separation >= min_seq_sep"""
        cells = max(length - min_seq_sep + 1, 0) * max(length - min_seq_sep, 0)
        return cells if directed else cells // 2

    def _check_compatible(self, predicted: ResidueInteractionGraph,
                          reference: ResidueInteractionGraph) -> None:
        if predicted.full_length != reference.full_length:
            raise IncompatibleGraphError(
                "Predicted and reference graphs are over sequences of different length",
                {'predicted_length': predicted.full_length, 'reference_length': reference.full_length}
            )
        if predicted.directed != reference.directed:
            raise IncompatibleGraphError(
                "Can't evaluate a directed graph against an undirected one",
                {'predicted_directed': predicted.directed, 'reference_directed': reference.directed}
            )

    @staticmethod
    def _check_endpoints(other: ResidueInteractionGraph,
                         i: int, j: int) -> None:
        for serial in (i, j):
            if not other.has_node(serial):
                raise IncompatibleGraphError(
                    f"Residue {serial} of a contact has no counterpart in the other graph",
                    {'serial': serial, 'contact': (i, j)}
                )

    def evaluate(self, predicted: ResidueInteractionGraph,
                 reference: ResidueInteractionGraph,
                 min_seq_sep: Optional[int] = None) -> PredEval:
        """Evaluate predicted against reference

        Contacts are matched by residue serial pair; order only matters for
        directed graphs.

        Args:
            predicted: Predicted graph
            reference: Reference (native) graph
            min_seq_sep: Minimum sequence separation of counted contacts,
                the evaluator's default if omitted

        Returns:
            PredEval confusion matrix

        Raises:
            IncompatibleGraphError: If the graphs are over different sequences
        """
        min_seq_sep = self.min_seq_sep if min_seq_sep is None else min_seq_sep
        if min_seq_sep < 1:
            raise ValidationError(f"Minimum sequence separation must be >= 1, got {min_seq_sep}")
        self._check_compatible(predicted, reference)

        tp = fp = fn = 0
        predicted_count = original_count = 0

        for i, j, _ in predicted.edges():
            if predicted.get_contact_range(i, j) < min_seq_sep:
                continue
            self._check_endpoints(reference, i, j)
            predicted_count += 1
            if reference.contains_edge(i, j):
                tp += 1
            else:
                fp += 1

        for i, j, _ in reference.edges():
            if reference.get_contact_range(i, j) < min_seq_sep:
                continue
            self._check_endpoints(predicted, i, j)
            original_count += 1
            if not predicted.contains_edge(i, j):
                fn += 1

        total = self.total_cells(reference.full_length, min_seq_sep, reference.directed)
        result = PredEval(tp=tp, fp=fp, tn=total - tp - fp - fn, fn=fn,
                          predicted=predicted_count, original=original_count,
                          total_cells=total, min_seq_sep=min_seq_sep)
        self.logger.debug(f"Evaluated prediction: {result.summary()}")
        return result
