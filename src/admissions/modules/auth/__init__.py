"""Authentication module."""

from admissions.modules.auth.router import router
from admissions.modules.auth.schemas import AuthResponse, LoginRequest, RegisterRequest

__all__ = ["router", "AuthResponse", "LoginRequest", "RegisterRequest"]
