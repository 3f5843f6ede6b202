"""HTTP API for MediTerm (FastAPI)."""
