"""
Serving — FastAPI application for the search pipeline.

Run with ``uvicorn ragger.serving.app:app``.
"""
