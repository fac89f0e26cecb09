"""
Core module - Configuration, database, security, authorization and storage.
"""

from admissions.core.authorization import Action, AuthContext, Decision, Role, check, enforce
from admissions.core.config import get_settings, settings
from admissions.core.database import Base, close_db, get_db, init_db
from admissions.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from admissions.core.storage import LocalBlobStorage, get_storage

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
    # Authorization
    "Action",
    "AuthContext",
    "Decision",
    "Role",
    "check",
    "enforce",
    # Storage
    "LocalBlobStorage",
    "get_storage",
]
