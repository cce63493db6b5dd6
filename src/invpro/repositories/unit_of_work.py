from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from invpro.domain.models import BusinessInfo
from invpro.repositories.contracts import Changeset, StateRepository


class UnitOfWork(Protocol):
    changes: Changeset

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def put(self, record: object) -> None: ...
    def remove(self, collection: str, record_id: str) -> None: ...
    def put_business_info(self, info: BusinessInfo) -> None: ...


@dataclass
class RepositoryUnitOfWork:
    """Unit of Work adapter for transactional write use-cases.

    Services stage records while the block runs; on a clean exit the whole
    changeset goes to the repository in a single ``commit`` call. An exception
    inside the block discards everything staged.
    """

    repo: StateRepository
    changes: Changeset = field(default_factory=Changeset)

    def __enter__(self) -> "RepositoryUnitOfWork":
        self.changes = Changeset()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and not self.changes.is_empty():
            self.repo.commit(self.changes)
        return None

    def put(self, record: object) -> None:
        self.changes.put(record)

    def remove(self, collection: str, record_id: str) -> None:
        self.changes.remove(collection, record_id)

    def put_business_info(self, info: BusinessInfo) -> None:
        self.changes.business_info = info
