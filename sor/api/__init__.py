"""HTTP surface of the router (FastAPI)."""
