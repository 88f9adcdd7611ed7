#!/usr/bin/env python3
"""
RIG Toolkit Models Module
"""
from .graph import ContactEdge, GraphComparison, ResidueInteractionGraph, ResidueNode
from .alignment import GAP, GAP_CHARACTER, AlignmentIndex
from .evaluation import PredEval
from .secondary_structure import SecStrucElement

__all__ = [
    'ResidueNode', 'ContactEdge', 'GraphComparison', 'ResidueInteractionGraph',
    'GAP', 'GAP_CHARACTER', 'AlignmentIndex', 'PredEval', 'SecStrucElement',
]
