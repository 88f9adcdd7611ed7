# rig/models/evaluation.py
"""Confusion matrix of a predicted contact graph against a reference graph"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PredEval:
    """Prediction evaluation counts

    predicted and original count the contacts of the predicted and reference
    graphs with sequence separation >= min_seq_sep; total_cells is the
    number of residue pairs with that separation.
    """
    tp: int
    fp: int
    tn: int
    fn: int
    predicted: int
    original: int
    total_cells: int
    min_seq_sep: int = 1

    @property
    def sensitivity(self) -> float:
        """TP / (TP + FN), NaN when there are no positives"""
        denominator = self.tp + self.fn
        return self.tp / denominator if denominator else math.nan

    @property
    def specificity(self) -> float:
        """TN / (TN + FP), NaN when there are no negatives"""
        denominator = self.tn + self.fp
        return self.tn / denominator if denominator else math.nan

    @property
    def accuracy(self) -> float:
        """Fraction of predicted contacts that are correct (precision)"""
        if self.predicted == 0:
            return 1.0
        if self.original == 0:
            return 0.0
        return self.tp / self.predicted

    @property
    def coverage(self) -> float:
        """Fraction of reference contacts that were predicted (recall)"""
        if self.original == 0:
            return 1.0
        if self.predicted == 0:
            return 0.0
        return self.tp / self.original

    def as_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result.update({
            'sensitivity': self.sensitivity,
            'specificity': self.specificity,
            'accuracy': self.accuracy,
            'coverage': self.coverage,
        })
        return result

    def summary(self) -> str:
        return (f"TP={self.tp} FP={self.fp} TN={self.tn} FN={self.fn} "
                f"predicted={self.predicted} original={self.original} "
                f"accuracy={self.accuracy:.3f} coverage={self.coverage:.3f} "
                f"(min_seq_sep={self.min_seq_sep})")
