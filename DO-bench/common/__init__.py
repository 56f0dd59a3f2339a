"""
Common utilities for the block benchmark.
"""

from .phase_manager import PhaseManager
from .token_pool import TokenPool

__all__ = ['PhaseManager', 'TokenPool']
