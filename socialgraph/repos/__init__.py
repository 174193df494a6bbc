from .account_repo import AccountRepo

__all__ = ["AccountRepo"]
