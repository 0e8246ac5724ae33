# Overview: Transaction and row-locking helpers shared by the mutating services.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work():
    """
    Commit everything added inside the block as one transaction.

    Any exception rolls the whole session back and propagates, so a domain
    change and the audit rows written for it commit together or not at all.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
