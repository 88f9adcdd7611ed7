#!/usr/bin/env python3
"""
RIG Toolkit Core Algorithms
"""
from .consensus import ConsensusBuilder, Vote, VoteTally
from .ensemble import RIGEnsemble
from .evaluator import PredictionEvaluator
from .logging_config import LoggingManager
from .neighborhood import CommonNeighborhood, Neighborhood, NeighborhoodView

__all__ = [
    'ConsensusBuilder', 'Vote', 'VoteTally', 'RIGEnsemble', 'PredictionEvaluator',
    'LoggingManager', 'Neighborhood', 'CommonNeighborhood', 'NeighborhoodView',
]
