"""
Request-scoped transaction with post-commit and post-rollback callbacks.

File moves must only happen once the rows that point at them are durable,
and staged files must be cleaned up if those rows never make it. Services
register that work here instead of touching the disk inline:

    with uow:
        uow.session.add(doc)
        uow.after_rollback(lambda: store.discard(staged))
        uow.after_commit(lambda: store.promote(staged))

Leaving the block normally commits and then runs the commit hooks in
registration order; an exception rolls back and runs the rollback hooks.
"""

import logging
from typing import Callable, List

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Hook = Callable[[], None]


class UnitOfWork:
    def __init__(self, session: Session):
        self.session = session
        self._on_commit: List[Hook] = []
        self._on_rollback: List[Hook] = []

    def after_commit(self, fn: Hook) -> None:
        self._on_commit.append(fn)

    def after_rollback(self, fn: Hook) -> None:
        self._on_rollback.append(fn)

    @property
    def pending(self) -> bool:
        return bool(self._on_commit or self._on_rollback)

    def commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.rollback()
            raise

        hooks = self._on_commit
        self._on_commit = []
        self._on_rollback = []
        # a failing hook stops the rest; the row it guarded is already durable
        for fn in hooks:
            fn()

    def rollback(self) -> None:
        try:
            self.session.rollback()
        finally:
            hooks = self._on_rollback
            self._on_commit = []
            self._on_rollback = []
            for fn in hooks:
                try:
                    fn()
                except Exception:
                    logger.warning("rollback hook %r failed", fn, exc_info=True)

    def close(self) -> None:
        if self.pending:
            logger.warning("unit of work closed with pending hooks; rolling back")
            self.rollback()

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False
