"""
Ingestion and export collaborators: GPX tracks, GeoJSON regions, and the
PNG/CSV/JSON writers used by the CLI.
"""
