# Path: core/__init__.py
# Purpose: Package initializer for core application layer.
# Layer: core.
# Details: Aggregates subpackages for scanning, hashing tasks, hash indexes, similarity, and the pipeline.
