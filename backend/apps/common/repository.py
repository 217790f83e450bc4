from typing import Generic, Iterable, Optional, Sequence, Type, TypeVar

from django.db import models

T = TypeVar("T", bound=models.Model)


class GenericRepository(Generic[T]):
    """Minimal ORM-backed record store shared by the app repositories."""

    ordering: Sequence[str] = ("pk",)

    def __init__(self, model: Type[T]):
        self.model = model

    def _base_queryset(self) -> models.QuerySet:
        return self.model.objects.all()

    def get(self, **filters) -> Optional[T]:
        return self._base_queryset().filter(**filters).order_by(*self.ordering).first()

    def list(self, **filters) -> Iterable[T]:
        return self._base_queryset().filter(**filters).order_by(*self.ordering)

    def create(self, **data) -> T:
        return self.model.objects.create(**data)

    def update(self, obj: T, **data) -> T:
        for k, v in data.items():
            setattr(obj, k, v)
        obj.save()
        return obj

    def delete(self, obj: T) -> None:
        obj.delete()
