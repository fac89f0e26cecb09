"""
Admin Audit Log Module

Append-only log of privileged mutations (status updates, evaluations,
application deletions), readable by admins newest-first.
"""

from .router import router

__all__ = ["router"]
