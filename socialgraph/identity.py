"""Map request principals onto account ids.

A Django user acts as the account whose id equals its ``username``
(the Firebase uid; see ``socialgraph.authentication``). Management
commands act through ``SYSTEM``.
"""

from typing import Optional


class SystemCaller:
    """In-process principal allowed to act as any account."""
    is_authenticated = True
    is_system = True
    username = None

    def __repr__(self):
        return "<SystemCaller>"


SYSTEM = SystemCaller()


def caller_account_id(caller) -> Optional[str]:
    """Return the account id the caller acts as, or None for anonymous callers."""
    if caller is None or not getattr(caller, "is_authenticated", False):
        return None
    return getattr(caller, "username", None) or None


def may_act_as(caller, account_id) -> bool:
    if getattr(caller, "is_system", False):
        return True
    own_id = caller_account_id(caller)
    return own_id is not None and own_id == account_id
