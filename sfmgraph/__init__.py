"""Poses, two-view geometry, view-graph cleanup and clustering, and track filtering for structure-from-motion."""

__version__ = "0.1.0"