from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import DashboardService
from app.apis.deps import CurrentUser


router = APIRouter()


class DashboardStatsRead(BaseModel):
    notes: int
    flashcard_sets: int
    total_cards: int
    mastered_cards: int
    mastery_percentage: int


@router.get(
    f"/{settings.app.version}/dashboard/stats",
    response_model=DashboardStatsRead,
    tags=["dashboard"],
)
async def get_dashboard_stats(
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> DashboardStatsRead:
    stats = await DashboardService(session).get_stats(user.id)
    return DashboardStatsRead(**stats.__dict__)
