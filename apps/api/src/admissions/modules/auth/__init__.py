"""
Auth Module

Session-cookie login with one active session per user, and password reset
by email.
"""

from .middleware import SingleSessionMiddleware
from .router import router

__all__ = ["router", "SingleSessionMiddleware"]
