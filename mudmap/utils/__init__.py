"""
Utility Module for MUDMAP
=========================

Components:
    - IdQueue: Deduplicating frontier queue for breadth-first walks
    - graph_utils: networkx adapters (import from mudmap.utils.graph_utils;
      it depends on mudmap.core, which itself uses IdQueue)
"""

from .id_queue import IdQueue

__all__ = ['IdQueue']
