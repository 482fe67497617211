"""Visualization and plotting module for line-scan traces."""

from .plotter import TracePlotter, PlotterThread

__all__ = ['TracePlotter', 'PlotterThread']
