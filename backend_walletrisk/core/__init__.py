"""
Core utilities: domain exceptions and address normalization.

Shared by the analysis engine, ingestion layer, agent worker and API server.
"""
