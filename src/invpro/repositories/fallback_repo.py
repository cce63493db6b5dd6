from __future__ import annotations

import logging
from typing import Optional

from invpro.domain.errors import PersistenceUnavailableError
from invpro.repositories.contracts import Changeset, StateRepository, StoredState
from invpro.repositories.sqlite_repo import SqliteRepository

log = logging.getLogger("invpro.storage")


class FallbackRepository:
    """Use the remote backend when configured, the local store otherwise.

    A remote failure is logged and the same call is made once against the
    local store. A changeset the remote did not fully accept is queued in the
    local outbox and replayed, in order, before the next remote read or write,
    so the remote never keeps an order without its stock change.
    Local failures propagate.
    """

    def __init__(self, local: SqliteRepository, remote: Optional[StateRepository] = None):
        self.local = local
        self.remote = remote

    def _replay_pending(self) -> None:
        for outbox_id, changes in self.local.pending_remote():
            self.remote.commit(changes)
            self.local.drop_pending_remote(outbox_id)
            log.info("remote_replayed outbox_id=%s", outbox_id, extra={"outbox_id": outbox_id})

    def load_state(self) -> StoredState:
        if self.remote is not None:
            try:
                self._replay_pending()
                return self.remote.load_state()
            except PersistenceUnavailableError as e:
                log.warning("remote_load_failed fallback=local error=%s", e)
        return self.local.load_state()

    def commit(self, changes: Changeset) -> None:
        if self.remote is None:
            self.local.commit(changes)
            return

        try:
            self._replay_pending()
            self.remote.commit(changes)
        except PersistenceUnavailableError as e:
            log.warning("remote_commit_failed fallback=local error=%s", e)
            self.local.commit(changes, queue_remote=True)
            return

        # Keep the local copy current for the next outage.
        try:
            self.local.commit(changes)
        except PersistenceUnavailableError as e:
            log.warning("local_mirror_failed error=%s", e)
