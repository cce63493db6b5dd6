from .contracts import Changeset, StateRepository, StoredState
from .fallback_repo import FallbackRepository
from .remote_repo import RemoteRepository
from .sqlite_repo import SqliteRepository
from .unit_of_work import RepositoryUnitOfWork

__all__ = [
    "Changeset",
    "StateRepository",
    "StoredState",
    "FallbackRepository",
    "RemoteRepository",
    "SqliteRepository",
    "RepositoryUnitOfWork",
]
