from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, Union

from django.db.models import Model, QuerySet


class DB_Accessor:
    """Thin query helper shared by the repositories; one instance per model."""

    def __init__(self, model: Type[Model], using: str = "default") -> None:
        self.model = model
        self.using = using

    def _filtered(self, lookup: Optional[Mapping[str, Any]] = None) -> QuerySet:
        return self.model.objects.using(self.using).filter(**(lookup or {}))

    def list(
        self,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
        offset: int = 0,
        as_dict: bool = False,
    ) -> Union[QuerySet, List[Dict[str, Any]]]:
        """Filter, order and window the model's rows.

        ``limit=None`` means "to the end"; ``as_dict`` evaluates the window
        into plain dicts for serialisation.
        """
        rows = self._filtered(filters)
        if order_by:
            rows = rows.order_by(*order_by)
        first = max(0, int(offset))
        last = None if limit is None else first + max(0, int(limit))
        if first or last is not None:
            rows = rows[first:last]
        return list(rows.values()) if as_dict else rows

    def get(self, **lookup: Any) -> Model:
        """Exactly one row; raises the model's DoesNotExist otherwise."""
        return self.model.objects.using(self.using).get(**lookup)

    def first(self, **lookup: Any) -> Optional[Model]:
        return self._filtered(lookup).first()

    def create(self, **fields: Any) -> Model:
        return self.model.objects.using(self.using).create(**fields)

    def delete(self, **lookup: Any) -> int:
        """Delete matching rows; returns the total Django reports, cascades included."""
        deleted, _per_model = self._filtered(lookup).delete()
        return deleted
