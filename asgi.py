"""
ASGI entry point for the analytics service.

Run with:
    uvicorn asgi:app --reload
"""

from app import create_app

app = create_app()
