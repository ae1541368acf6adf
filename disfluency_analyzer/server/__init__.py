"""HTTP service exposing the analysis engine (FastAPI app in app.py)."""
