"""
PCViz - Co-citation weighted pathway networks

Builds gene interaction networks from Pathway Commons, weights genes and
interactions by iHOP literature co-citation counts and serializes the result
for a Cytoscape.js viewer.
"""

__version__ = "0.1.0"
