"""
API server: FastAPI app exposing /score, /neighbors, /score/batch and /health.
"""
