"""
External Source Clients

iHOP co-citation scraper and Pathway Commons interaction query.
"""

from .ihop_spider import IHOPSpider, IHOP_MARKERS
from .pathway_commons import PathwayCommonsClient, SifFileSource, parse_sif_text

__all__ = [
    'IHOPSpider',
    'IHOP_MARKERS',
    'PathwayCommonsClient',
    'SifFileSource',
    'parse_sif_text',
]
