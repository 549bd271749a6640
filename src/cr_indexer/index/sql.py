"""
SQL Index Backend

SQLAlchemy-based implementation of the index client contract. Works against
any database SQLAlchemy supports; the test suite uses in-memory SQLite.

Every public method runs in its own transaction. SQLAlchemy failures are
surfaced as ``IndexBackendError``; no retry is attempted.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import select, delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import IndexBackendError
from .base import ANONYMOUS_SOURCE, join_fragments
from .models import IndexEntry
from .schema import IndexEntryRow, FulltextContribution


class SqlIndexClient:
    """
    Database-backed index using the ``index_entry`` and
    ``fulltext_contribution`` tables.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        """
        Parameters
        ----------
        session_factory : sessionmaker[Session]
            Factory producing sessions bound to the index database.
        """
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            raise IndexBackendError(
                f"Index backend failed during {operation}: {type(exc).__name__}"
            ) from exc

    def _fulltext_for(self, session: Session, variant_identity: str) -> Dict[str, str]:
        stmt = (
            select(FulltextContribution)
            .where(FulltextContribution.target_identity == variant_identity)
            .order_by(FulltextContribution.id)
        )
        contributions = [
            {row.bucket: row.text}
            for row in session.execute(stmt).scalars().all()
        ]
        return join_fragments(contributions)

    def _to_entry(self, session: Session, row: IndexEntryRow) -> IndexEntry:
        return IndexEntry(
            variant_identity=row.variant_identity,
            node_identity=row.node_identity,
            properties=dict(row.properties or {}),
            membership=row.membership,
            fulltext=self._fulltext_for(session, row.variant_identity),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_by_node_identity(self, node_identity: str) -> List[IndexEntry]:
        with self._transaction("find_by_node_identity") as session:
            stmt = (
                select(IndexEntryRow)
                .where(IndexEntryRow.node_identity == node_identity)
                .order_by(IndexEntryRow.variant_identity)
            )
            rows = session.execute(stmt).scalars().all()
            return [self._to_entry(session, row) for row in rows]

    def find_one_by_variant_identity(self, variant_identity: str) -> Optional[IndexEntry]:
        with self._transaction("find_one_by_variant_identity") as session:
            row = session.get(IndexEntryRow, variant_identity)
            if row is None:
                return None
            return self._to_entry(session, row)

    def upsert(
        self,
        variant_identity: str,
        properties: Mapping[str, Any],
        membership: Optional[str] = None,
        node_identity: Optional[str] = None,
    ) -> None:
        with self._transaction("upsert") as session:
            row = session.get(IndexEntryRow, variant_identity)
            if row is None:
                row = IndexEntryRow(variant_identity=variant_identity)
                session.add(row)

            if node_identity is not None:
                row.node_identity = node_identity
            row.properties = dict(properties)
            row.membership = membership

    def delete(self, variant_identity: str) -> bool:
        """
        Remove an entry and all fulltext contributions made by or to it.

        Returns True if an entry was deleted.
        """
        with self._transaction("delete") as session:
            result = session.execute(
                delete(IndexEntryRow).where(
                    IndexEntryRow.variant_identity == variant_identity
                )
            )
            session.execute(
                delete(FulltextContribution).where(
                    or_(
                        FulltextContribution.target_identity == variant_identity,
                        FulltextContribution.source_identity == variant_identity,
                    )
                )
            )
            return bool(result.rowcount)

    def append_fulltext(
        self,
        fragments: Mapping[str, str],
        variant_identity: str,
        source: Optional[str] = None,
    ) -> None:
        with self._transaction("append_fulltext") as session:
            if source is not None:
                session.execute(
                    delete(FulltextContribution).where(
                        FulltextContribution.target_identity == variant_identity,
                        FulltextContribution.source_identity == source,
                    )
                )
                session.flush()
                for bucket, text in fragments.items():
                    session.add(
                        FulltextContribution(
                            target_identity=variant_identity,
                            source_identity=source,
                            bucket=bucket,
                            text=text,
                        )
                    )
                return

            for bucket, text in fragments.items():
                if not text:
                    continue

                stmt = select(FulltextContribution).where(
                    FulltextContribution.target_identity == variant_identity,
                    FulltextContribution.source_identity == ANONYMOUS_SOURCE,
                    FulltextContribution.bucket == bucket,
                )
                row = session.execute(stmt).scalar_one_or_none()
                if row is None:
                    session.add(
                        FulltextContribution(
                            target_identity=variant_identity,
                            source_identity=ANONYMOUS_SOURCE,
                            bucket=bucket,
                            text=text,
                        )
                    )
                else:
                    row.text = f"{row.text} {text}" if row.text else text

    def drop_contributions(self, source: str) -> None:
        with self._transaction("drop_contributions") as session:
            session.execute(
                delete(FulltextContribution).where(
                    FulltextContribution.source_identity == source
                )
            )

    def count(self) -> int:
        with self._transaction("count") as session:
            return len(session.execute(select(IndexEntryRow.variant_identity)).all())
