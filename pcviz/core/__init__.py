"""
Core Pipeline Components

Configuration, errors, logging, the co-citation cache and the graph assembler.
The cache and assembler live in their own modules (pcviz.core.cocitation_cache,
pcviz.core.graph_assembler) since they depend on pcviz.models.
"""

from .config import Config, get_config, reset_config
from .exceptions import PCVizException

__all__ = [
    'Config',
    'get_config',
    'reset_config',
    'PCVizException',
]
