"""Batch website analysis service."""
