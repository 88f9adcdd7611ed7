#!/usr/bin/env python3
"""
Exception hierarchy for the RIG toolkit.
All custom exceptions should inherit from RIGError.
"""
from typing import Dict, Any, Optional


class RIGError(Exception):
    """Base exception for all RIG-related errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize with error message and optional details

        Args:
            message: Error message
            details: Optional details dictionary with context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(RIGError):
    """Error related to configuration issues"""
    pass


class ValidationError(RIGError):
    """Data validation error"""
    pass


class InvalidNodeError(ValidationError):
    """Edge or lookup references a residue serial absent from the graph"""
    pass


class InvalidEdgeError(ValidationError):
    """Malformed edge, e.g. a self-loop"""
    pass


class SequenceMismatchError(ValidationError):
    """Two graphs that must share a sequence do not"""
    pass


class IncompatibleGraphError(ValidationError):
    """Graphs cannot be evaluated against each other"""
    pass


class ConsensusInputError(ValidationError):
    """Templates, target and alignment are inconsistent"""
    pass


class LookupFailure(RIGError):
    """Base class for failed lookups"""
    pass


class TemplateNotFoundError(LookupFailure):
    """Template tag is not part of the ensemble"""
    pass


class AlignmentError(RIGError):
    """Error building or querying an alignment"""
    pass


class GraphFileFormatError(RIGError):
    """Error reading a graph file"""
    pass
