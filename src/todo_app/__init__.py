"""
Multi-user Todo backend.

FastAPI service with session-cookie login, per-user todo lists and admin role
management. Build the ASGI app with ``todo_app.main.create_app``.
"""

__version__ = "0.1.0"
