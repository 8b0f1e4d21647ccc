"""Persistence layer for saved quote comparisons.

The web front end lets a visitor keep a short list of quotes side by side.
Those quotes live in a database keyed by an anonymous browser token instead
of cookies. SQLite is the default for local development, but any
SQLAlchemy-compatible URL (PostgreSQL, MySQL) works for shared deployments.
The amortization engine itself never touches this store.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from loan_quote.config import DATABASE_URL, MAX_SAVED_COMPARISONS

logger = logging.getLogger(__name__)

Base = declarative_base()


class SavedQuoteModel(Base):
    __tablename__ = "saved_quotes"

    id = Column(String(64), primary_key=True)
    seq = Column(Integer, nullable=False, default=0)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    request_json = Column(Text, nullable=False)
    summary_json = Column(Text, nullable=False)
    schedule_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ComparisonStore:
    """Database-backed store of saved quotes, capped per user."""

    def __init__(self, url: str, *, max_per_user: int = MAX_SAVED_COMPARISONS) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_quotes(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        # Concurrent saves can share a seq; created_at and id break the tie
        with self._session_factory() as session:
            rows: Iterable[SavedQuoteModel] = session.execute(
                select(SavedQuoteModel)
                .where(SavedQuoteModel.user_token == user_token)
                .order_by(SavedQuoteModel.seq.asc(), SavedQuoteModel.created_at.asc(), SavedQuoteModel.id.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def add_quote(
        self,
        user_token: str,
        quote_id: str,
        name: str,
        request: dict,
        summary: dict,
        schedule: list,
    ) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            last_seq = session.execute(
                select(SavedQuoteModel.seq)
                .where(SavedQuoteModel.user_token == user_token)
                .order_by(SavedQuoteModel.seq.desc())
                .limit(1)
            ).scalar()
            session.add(
                SavedQuoteModel(
                    id=quote_id,
                    seq=(last_seq or 0) + 1,
                    user_token=user_token,
                    name=name,
                    request_json=json.dumps(request),
                    summary_json=json.dumps(summary),
                    schedule_json=json.dumps(schedule),
                )
            )
            session.commit()
        self._trim_user(user_token)

    def remove_quote(self, user_token: str, quote_id: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            row = session.get(SavedQuoteModel, quote_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()

    def clear_quotes(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                SavedQuoteModel.__table__.delete().where(SavedQuoteModel.user_token == user_token)
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(SavedQuoteModel)
                .where(SavedQuoteModel.user_token == user_token)
                .order_by(SavedQuoteModel.seq.desc(), SavedQuoteModel.created_at.desc(), SavedQuoteModel.id.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()
            logger.debug("Trimmed %d saved quotes for %s", len(rows) - self._max_per_user, user_token)

    @staticmethod
    def _to_dict(row: SavedQuoteModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "request": json.loads(row.request_json),
            "summary": json.loads(row.summary_json),
            "schedule": json.loads(row.schedule_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: str | None) -> ComparisonStore:
    return ComparisonStore(url or DATABASE_URL)
