"""Routes for registering and inspecting data sources."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from datachat.core.log import get_logger
from datachat.core.security import AuthenticatedUser, get_current_user
from datachat.dependencies import get_datasource_service
from datachat.schemas import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    DataSourceCreate,
    DataSourceSummary,
    SQLRunRequest,
    SQLRunResponse,
    TableListResponse,
)
from datachat.services import DataSourceService, params_from_request

router = APIRouter(prefix="/datasources", tags=["datasources"])
LOGGER = get_logger(__name__)


@router.post("/test", response_model=ConnectionTestResponse)
def test_connection(
    payload: ConnectionTestRequest,
    _user: AuthenticatedUser = Depends(get_current_user),
    service: DataSourceService = Depends(get_datasource_service),
) -> ConnectionTestResponse:
    """Check that the supplied parameters open a connection; nothing is stored."""

    service.test_connection(params_from_request(payload))
    return ConnectionTestResponse(message="Connection successful")


@router.post("", response_model=DataSourceSummary, status_code=status.HTTP_201_CREATED)
def register_datasource(
    payload: DataSourceCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    service: DataSourceService = Depends(get_datasource_service),
) -> DataSourceSummary:
    return service.register(user.user_id, payload)


@router.get("", response_model=list[DataSourceSummary])
def list_datasources(
    user: AuthenticatedUser = Depends(get_current_user),
    service: DataSourceService = Depends(get_datasource_service),
) -> list[DataSourceSummary]:
    return service.list_for_user(user.user_id)


@router.delete("/{datasource_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_datasource(
    datasource_id: int,
    user: AuthenticatedUser = Depends(get_current_user),
    service: DataSourceService = Depends(get_datasource_service),
) -> None:
    service.delete(user.user_id, datasource_id)


@router.get("/{project_id}/tables", response_model=TableListResponse)
def list_tables(
    project_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: DataSourceService = Depends(get_datasource_service),
) -> TableListResponse:
    tables = service.list_tables(project_id, owner_id=user.user_id)
    return TableListResponse(project_id=project_id, tables=tables)


@router.post("/{project_id}/query", response_model=SQLRunResponse)
def run_query(
    project_id: str,
    payload: SQLRunRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: DataSourceService = Depends(get_datasource_service),
) -> SQLRunResponse:
    """Run a hand-written SELECT against the data source."""

    result = service.run_sql(project_id, payload.sql, owner_id=user.user_id)
    return SQLRunResponse(
        sql=payload.sql,
        columns=result.columns,
        rows=result.rows,
        row_count=result.row_count,
        duration_ms=result.duration_ms,
        truncated=result.truncated,
    )
