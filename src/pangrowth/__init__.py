"""
Pangenome Growth Analysis

Estimates how the number of distinct nodes, edges and base pairs of a
pangenome graph grows with the number of sampled paths, and fits Heaps' law
to the result.
"""

__version__ = "1.0.0"
__author__ = "pangrowth developers"
