"""
ASGI entry point.

Run with:
    uvicorn asgi:app --reload

Caller identity is resolved upstream; the auth layer in front of this app
must set ``request.state.user`` to a CallerIdentity.
"""

from app import create_app

app = create_app()
