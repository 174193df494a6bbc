"""Repository helpers for account lookups."""

from typing import Dict, List, Optional

from socialgraph.db_accessor import DB_Accessor
from socialgraph.models import Account


class AccountRepo(DB_Accessor):
    """Repository for account profile queries (follow fields are owned by the stores)."""
    def __init__(self, using: str = "default") -> None:
        """Initialise with the Account model on the given database alias."""
        super().__init__(Account, using=using)

    def list_ids(self) -> List[str]:
        """Return all account IDs."""
        return list(self._filtered().order_by("id").values_list("id", flat=True))

    def get_by_id(self, account_id: str) -> Account:
        """Return an account by id."""
        return self.get(id=account_id)

    def resolve_id_by_email(self, email: Optional[str]) -> Optional[str]:
        """Return the id of the account registered with email (case-insensitive), or None."""
        if not email or not email.strip():
            return None
        account = self._filtered({"email__iexact": email.strip()}).order_by("id").first()
        return account.id if account else None

    def display_names(self, account_ids) -> Dict[str, str]:
        """Map each existing account id to its best human-readable label; unknown ids are left out."""
        rows = self.list(filters={"id__in": list(account_ids)}, order_by=("id",), as_dict=True)
        return {row["id"]: row["display_name"] or row["email"] or row["id"] for row in rows}  # type: ignore[index]
