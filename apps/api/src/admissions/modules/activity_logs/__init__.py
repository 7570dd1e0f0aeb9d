"""
Activity Logs Module

Audit trail of admin actions (status changes, document reviews, trash
operations, profile updates).
"""

from .router import router
from .service import log_activity

__all__ = ["router", "log_activity"]
