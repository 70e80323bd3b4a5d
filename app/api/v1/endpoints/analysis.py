import logging
from fastapi import APIRouter, Depends, HTTPException, status as http_status
from sqlalchemy.ext.asyncio import AsyncSession
from functools import lru_cache
from typing import List
from pydantic import BaseModel, Field, field_validator
import time
from datetime import datetime
from uuid import UUID

from app.db.database import get_db
from app.core.config import settings
from app.core.exceptions import TransactionStoreError
from app.analysis.analyzer import SpendingAnalyzer
from app.analysis.generation import GenerationProvider, build_generation_provider
from app.analysis.metrics import metrics
from app.analysis.models import SpendingAnalysis
from app.analysis.periods import DEFAULT_PERIOD, PeriodToken
from app.analysis.recommendations import RecommendationEngine
from app.analysis.store import SqlTransactionStore, TransactionStore

logger = logging.getLogger(__name__)
router = APIRouter()


class SpendingAnalysisRequest(BaseModel):
    """Request model for spending analysis."""
    user_id: str = Field(..., description="User ID (UUID format)")
    period_index: int = Field(
        default=int(DEFAULT_PERIOD),
        description=(
            "0=This Week, 1=This Month, 2=Last 3 Months, 3=Last 6 Months, 4=This Year. "
            "Unknown values analyze This Month."
        ),
    )

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v):
        """Validate that user_id is a valid UUID."""
        try:
            UUID(v)
            return v
        except ValueError:
            raise ValueError('user_id must be a valid UUID')


class SpendingInsightDto(BaseModel):
    title: str
    description: str
    icon: str
    type: str


class CategoryBreakdownDto(BaseModel):
    category_name: str
    amount: float
    percentage: float
    color_hex: str
    formatted_amount: str
    formatted_percentage: str


class SpendingAnalysisResponse(BaseModel):
    """Response model for spending analysis."""
    summary: str
    period: str
    insights: List[SpendingInsightDto] = Field(default_factory=list)
    category_breakdowns: List[CategoryBreakdownDto] = Field(default_factory=list)
    total_income: float = 0.0
    total_expenses: float = 0.0
    savings_rate: float = 0.0
    recommendation: str = ""
    generation_used: bool = False
    has_data: bool = False
    transaction_count: int = 0
    analysis_date: datetime

    @classmethod
    def from_analysis(cls, analysis: SpendingAnalysis) -> "SpendingAnalysisResponse":
        return cls(
            summary=analysis.summary,
            period=analysis.period,
            insights=[
                SpendingInsightDto(
                    title=i.title,
                    description=i.description,
                    icon=i.icon,
                    type=i.type.value,
                )
                for i in analysis.insights
            ],
            category_breakdowns=[
                CategoryBreakdownDto(
                    category_name=b.category_name,
                    amount=float(b.amount),
                    percentage=round(b.percentage, 2),
                    color_hex=b.color_hex,
                    formatted_amount=b.formatted_amount,
                    formatted_percentage=b.formatted_percentage,
                )
                for b in analysis.category_breakdowns
            ],
            total_income=float(analysis.total_income),
            total_expenses=float(analysis.total_expenses),
            savings_rate=round(float(analysis.savings_rate), 2),
            recommendation=analysis.recommendation,
            generation_used=analysis.generation_used,
            has_data=analysis.has_data,
            transaction_count=analysis.transaction_count,
            analysis_date=analysis.analysis_date,
        )


class PeriodOptionDto(BaseModel):
    index: int
    label: str


@lru_cache()
def get_generation_provider() -> GenerationProvider:
    """One provider per process, so its load attempt is shared by all requests."""
    return build_generation_provider(settings)


def get_transaction_store(db: AsyncSession = Depends(get_db)) -> TransactionStore:
    return SqlTransactionStore(db)


def get_spending_analyzer(
    store: TransactionStore = Depends(get_transaction_store),
    provider: GenerationProvider = Depends(get_generation_provider),
) -> SpendingAnalyzer:
    engine = RecommendationEngine(
        provider=provider,
        max_length=settings.GENERATION_MAX_TOKENS,
        temperature=settings.GENERATION_TEMPERATURE,
        timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
    )
    return SpendingAnalyzer(store, engine)


@router.get(
    "/status",
    summary="Service health status",
    description="Returns the operational status, generation capability and metrics of the analysis service"
)
async def analysis_status(provider: GenerationProvider = Depends(get_generation_provider)):
    generation_available = await provider.try_load()
    return {
        "status": "operational",
        "service": "Spending Analysis",
        "version": settings.VERSION,
        "features": {
            "spending_analysis": "available",
            "generated_recommendations": "available" if generation_available else "unavailable",
        },
        "generation_provider": provider.name,
        "metrics": metrics.get_stats(),
    }


@router.get(
    "/periods",
    response_model=List[PeriodOptionDto],
    summary="Analysis periods",
    description="Lists the selectable analysis periods in display order"
)
async def list_periods():
    return [PeriodOptionDto(index=int(token), label=token.label) for token in PeriodToken]


@router.post(
    "/spending",
    response_model=SpendingAnalysisResponse,
    summary="Analyze spending",
    description="Summarizes a user's income and expenses for a period with insights and a recommendation",
    responses={
        200: {"description": "Analysis completed successfully"},
        422: {"description": "Invalid request parameters"},
        503: {"description": "Transaction data unavailable"},
        500: {"description": "Internal server error"}
    }
)
async def analyze_spending(
    request: SpendingAnalysisRequest,
    analyzer: SpendingAnalyzer = Depends(get_spending_analyzer),
):
    """
    Analyze a user's spending for the selected period.

    Store failures are reported as 503; an empty period is a normal response
    with a "no transactions" summary.
    """
    start_time = time.perf_counter()
    user_id = request.user_id

    logger.info(f"Starting spending analysis for user {user_id}, period_index={request.period_index}")

    try:
        analysis = await analyzer.analyze_period(user_id, request.period_index)
    except TransactionStoreError:
        processing_time = time.perf_counter() - start_time
        metrics.record_analysis(user_id=user_id, processing_time=processing_time, success=False)
        raise
    except Exception as e:
        processing_time = time.perf_counter() - start_time
        metrics.record_analysis(user_id=user_id, processing_time=processing_time, success=False)
        logger.error(f"Unexpected error in spending analysis for user {user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during spending analysis"
        )

    processing_time = time.perf_counter() - start_time
    metrics.record_analysis(
        user_id=user_id,
        processing_time=processing_time,
        transaction_count=analysis.transaction_count,
        generated=analysis.generation_used,
        success=True,
    )

    logger.info(
        f"Spending analysis completed for user {user_id}: "
        f"{len(analysis.insights)} insights, period={analysis.period}, "
        f"processing_time={processing_time:.2f}s"
    )

    return SpendingAnalysisResponse.from_analysis(analysis)
