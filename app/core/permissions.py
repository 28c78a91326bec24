# ============================================================================
# FILE: app/core/permissions.py
# ============================================================================
from typing import NewType, Optional

AccountId = NewType("AccountId", int)


def account_id_of(account) -> Optional[AccountId]:
    """Typed id of an account object, None for anonymous callers"""
    if account is None:
        return None
    return AccountId(account.id)


def is_owner(owner_id: Optional[int], account) -> bool:
    """Ownership is plain equality of account ids, never roles"""
    actor_id = account_id_of(account)
    if actor_id is None or owner_id is None:
        return False
    return AccountId(owner_id) == actor_id
