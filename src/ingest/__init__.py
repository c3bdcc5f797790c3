"""Facility ingestion pipeline.

This package fetches raw facility rows from the source API or a local
export and drives them through transforms into the row store.
"""
