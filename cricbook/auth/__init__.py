"""
Authentication module for password login and JWT tokens
"""
from cricbook.auth.principal import Principal
from cricbook.auth.utils import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token,
    get_current_principal,
    get_optional_principal,
    require_admin,
)

__all__ = [
    "Principal",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "verify_token",
    "get_current_principal",
    "get_optional_principal",
    "require_admin",
]
