"""
Plot visualization modules for sweep results.
"""

from .base import BasePlotter
from .sweep_plots import PushLatencyPlotter, SweepPlotter

__all__ = ['BasePlotter', 'PushLatencyPlotter', 'SweepPlotter']
