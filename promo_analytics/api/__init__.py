"""HTTP API for campaign event ingestion and dashboard analytics."""
