"""Explicit unit-of-work handle around a SQLAlchemy session."""

from typing import Callable

from sqlalchemy.orm import Session


class UnitOfWork:
    """Owns one session for the duration of a `with` block.

    Leaving the block rolls back anything uncommitted when an exception
    escaped, and always closes the session.

    Example:
        ```python
        with UnitOfWork(SessionLocal) as uow:
            PaymentRecorder(uow).record_payment(SYSTEM, tenant_id, ...)
        ```
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("UnitOfWork is not active; use it as a context manager")
        return self._session

    def __enter__(self) -> "UnitOfWork":
        self._session = self._session_factory()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self._session.rollback()
        finally:
            self._session.close()
            self._session = None

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


__all__ = ["UnitOfWork"]
