"""
Identity Core - token verification and user/role lookup.
"""

from reviewflow.kernel.identity.jwt import (
    JWTManager,
    AccessTokenPayload,
    create_access_token,
    verify_access_token,
)
from reviewflow.kernel.identity.user_directory import UserDirectory

__all__ = [
    "JWTManager",
    "AccessTokenPayload",
    "create_access_token",
    "verify_access_token",
    "UserDirectory",
]
