"""
NodeFlow - An async workflow execution engine for typed node graphs.

Assemble web-scraping, embedding, search and LLM steps into a directed
graph, then run it end-to-end with per-node status, timing and output.
"""

__version__ = "1.0.0"
