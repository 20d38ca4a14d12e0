# Path: core/similarity/__init__.py
# Purpose: Package initializer for the similarity aggregation layer.
# Layer: core/similarity.
# Details: Exposes the single-writer aggregator and the per-id lifecycle states.

from .aggregator import RecordState, SimilarityAggregator

__all__ = ["RecordState", "SimilarityAggregator"]
