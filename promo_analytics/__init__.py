"""Promo Analytics - campaign event ingestion and funnel statistics."""

__version__ = "1.0.0"
