"""
Data Models

Pydantic models for interactions, graph elements and resolution results.
"""

from .data_models import (
    CocitationMap, PropertyKey, SIFType, GraphKind,
    InteractionRecord, Node, Edge, Graph,
    PrecomputedNetwork, NetworkResult,
    Resolution, ResolutionKind,
)

__all__ = [
    'CocitationMap', 'PropertyKey', 'SIFType', 'GraphKind',
    'InteractionRecord', 'Node', 'Edge', 'Graph',
    'PrecomputedNetwork', 'NetworkResult',
    'Resolution', 'ResolutionKind',
]
