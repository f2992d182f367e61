from .owner import (
    OwnerDependency,
    decode_account_token,
    issue_account_token,
    api_error,
    require_account,
    resolve_owner,
)

__all__ = [
    "OwnerDependency",
    "decode_account_token",
    "issue_account_token",
    "api_error",
    "require_account",
    "resolve_owner",
]
