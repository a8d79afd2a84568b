"""
Main application entry point for the Network Notifier API.

This module builds the FastAPI application from environment settings so
it can be served with ``uvicorn main:app``. Startup fails immediately
when ``JWT_SECRET`` is not configured.

Modules:
- notifier.application: Application factory
- notifier.core: Application settings
"""

from notifier.application import create_app

app = create_app()
