"""
CRUD de entrevistas y feedback
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interview import Interview, CandidateFeedback, InterviewState
from .base import CRUDBase


class CRUDInterview(CRUDBase[Interview]):
    """CRUD de entrevistas"""

    async def get_by_application(self, db: AsyncSession, application_id: str) -> List[Interview]:
        result = await db.execute(
            select(self.model)
            .where(self.model.application_id == application_id)
            .order_by(self.model.scheduled_at.desc())
        )
        return list(result.scalars().all())

    async def get_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        *,
        as_recruiter: bool,
        since: Optional[datetime] = None
    ) -> List[Interview]:
        """Entrevistas de un reclutador o de un candidato"""
        column = self.model.recruiter_user_id if as_recruiter else self.model.candidate_user_id
        query = select(self.model).where(column == user_id)
        if since is not None:
            query = query.where(
                self.model.scheduled_at >= since,
                self.model.state.in_([
                    InterviewState.PROPOSED.value,
                    InterviewState.ACCEPTED.value,
                    InterviewState.RESCHEDULED.value,
                ]),
            )
        result = await db.execute(query.order_by(self.model.scheduled_at.asc()))
        return list(result.scalars().all())


class CRUDFeedback(CRUDBase[CandidateFeedback]):
    """CRUD de feedback"""

    async def get_by_candidate(self, db: AsyncSession, candidate_user_id: str) -> List[CandidateFeedback]:
        result = await db.execute(
            select(self.model)
            .where(self.model.candidate_user_id == candidate_user_id)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_recruiter(self, db: AsyncSession, recruiter_user_id: str) -> List[CandidateFeedback]:
        result = await db.execute(
            select(self.model).where(self.model.recruiter_user_id == recruiter_user_id)
        )
        return list(result.scalars().all())


interview_crud = CRUDInterview(Interview)
feedback_crud = CRUDFeedback(CandidateFeedback)
