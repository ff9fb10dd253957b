"""Candidate selection and ranking."""

from icns.resolution.engine import ResolutionEngine, rank
from icns.resolution.selector import CandidateSelector, Selection, filter_collections

__all__ = ["CandidateSelector", "ResolutionEngine", "Selection", "filter_collections", "rank"]
