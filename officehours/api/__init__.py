"""API support package (FastAPI dependency providers)."""
