"""
FIO vote snapshot backend.

Rebuilds voter and producer voting power from public FIO API nodes and
flags every account whose on-chain figure disagrees with the recomputation.
"""

__all__ = [
]
