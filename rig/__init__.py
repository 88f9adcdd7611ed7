#!/usr/bin/env python3
"""
RIG (Residue Interaction Graph) Toolkit

Residue interaction graphs of protein chains, ensemble consensus graphs
and contact prediction evaluation.
"""

__version__ = '0.1.0'
__license__ = 'MIT'

# Make key classes available at package level
from .exceptions import RIGError
from .models.graph import ContactEdge, ResidueInteractionGraph, ResidueNode
from .models.alignment import GAP, AlignmentIndex
from .models.evaluation import PredEval
from .core.consensus import ConsensusBuilder, Vote, VoteTally
from .core.ensemble import RIGEnsemble
from .core.evaluator import PredictionEvaluator
from .core.neighborhood import NeighborhoodView

__all__ = [
    'RIGError', 'ResidueNode', 'ContactEdge', 'ResidueInteractionGraph',
    'GAP', 'AlignmentIndex', 'PredEval', 'ConsensusBuilder', 'Vote', 'VoteTally',
    'RIGEnsemble', 'PredictionEvaluator', 'NeighborhoodView',
]
