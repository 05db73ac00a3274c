"""
Utility modules for PCViz.
"""

from .id_mapping import GeneNameService
from .precomputed import PrecomputedStore

__all__ = ['GeneNameService', 'PrecomputedStore']
