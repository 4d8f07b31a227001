"""
FastAPI Router for the question and chart endpoints
"""
from fastapi import APIRouter, Depends

from datachat.core.log import get_logger
from datachat.core.security import AuthenticatedUser, get_current_user
from datachat.dependencies import get_pipeline
from datachat.schemas import (
    AskQuestionRequest,
    AskQuestionResponse,
    GenerateChartRequest,
    GenerateChartResponse,
    dump_chart_spec,
)

from .pipeline import QueryPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/query", response_model=AskQuestionResponse)
async def ask_question(
    payload: AskQuestionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    pipeline: QueryPipeline = Depends(get_pipeline),
):
    """
    Answer a natural-language question against a registered database

    Request body:
    - projectId: Data source identifier
    - question: Natural language question

    Returns:
    - sql: The validated SQL that was executed
    - result: Rows as column-keyed objects
    - rowCount: Number of rows returned
    """
    outcome = await pipeline.ask_question(payload.project_id, payload.question, owner_id=user.user_id)
    return AskQuestionResponse(
        sql=outcome.sql,
        result=outcome.rows,
        row_count=outcome.result.row_count,
    )


@router.post("/chart", response_model=GenerateChartResponse)
async def generate_chart(
    payload: GenerateChartRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    pipeline: QueryPipeline = Depends(get_pipeline),
):
    """
    Answer a question and describe the result as a chart

    ``chartSpec`` is null when the query returned no rows or the model did not
    produce a usable chart; the data is returned either way.
    """
    outcome = await pipeline.generate_chart(
        payload.project_id,
        payload.user_prompt,
        payload.chart_type,
        owner_id=user.user_id,
    )
    return GenerateChartResponse(
        sql=outcome.sql,
        query_result=outcome.rows,
        chart_spec=dump_chart_spec(outcome.chart_spec) if outcome.chart_spec else None,
    )
