# Overview: Unit-of-work and locking helpers shared by every mutating service.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from ..errors import DuplicateKey
from ..extensions import db


def lock_for_update(query, *, read: bool = False):
    """
    Apply row-level locking for critical operations.

    read=True requests a shared lock (FOR SHARE) so a concurrent revocation
    of the locked row waits for this unit of work.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update(read=read)


@contextmanager
def unit_of_work():
    """
    One atomic unit: authorization checks, the mutation, its audit record and
    bookkeeping stamps commit together or not at all.

    Nested use joins the outer unit; only the outermost block commits.
    Errors are never retried here.
    """
    if db.session.info.get("uow_depth"):
        db.session.info["uow_depth"] += 1
        try:
            yield db.session
        finally:
            db.session.info["uow_depth"] -= 1
        return

    db.session.info["uow_depth"] = 1
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    finally:
        db.session.info["uow_depth"] = 0


def flush_unique(message: str) -> None:
    """Flush pending writes, reporting unique-constraint races as DuplicateKey."""
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise DuplicateKey(message) from exc
