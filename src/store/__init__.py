"""Row store and derived tables.

This package persists facilities in bounded batches and maintains the
state and city rollups and ingest metadata consumed by readers.
"""
