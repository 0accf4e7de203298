"""
Heuristic insights over the prediction set.

Modules
-------
generator   Diversity, range-width, recession-consensus and participation passes.
"""
