"""Persistence helpers for registered data sources."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from datachat.models import DataSource


class DataSourceRepository:
    """Query and mutate ``DataSource`` rows within a caller-owned session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_project_id(self, project_id: str) -> DataSource | None:
        return self._session.execute(
            select(DataSource).where(DataSource.project_id == project_id)
        ).scalar_one_or_none()

    def get_by_id(self, datasource_id: int) -> DataSource | None:
        return self._session.get(DataSource, datasource_id)

    def list_for_user(self, user_id: int) -> list[DataSource]:
        """Return the user's data sources, newest first."""

        result = self._session.execute(
            select(DataSource)
            .where(DataSource.user_id == user_id)
            .order_by(DataSource.created_at.desc(), DataSource.id.desc())
        )
        return list(result.scalars())

    def add(self, datasource: DataSource) -> DataSource:
        self._session.add(datasource)
        self._session.flush()
        return datasource

    def delete(self, datasource: DataSource) -> None:
        self._session.delete(datasource)
        self._session.flush()
