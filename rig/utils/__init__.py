#!/usr/bin/env python3
"""
RIG Toolkit Utilities Module

Graph file readers and writers live in rig.utils.graph_io.
"""
from .residues import one_to_three, three_to_one, is_standard_residue

__all__ = ['one_to_three', 'three_to_one', 'is_standard_residue']
