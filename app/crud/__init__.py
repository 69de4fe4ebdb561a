"""
Operaciones CRUD
"""
from .company import company_crud, user_role_crud
from .profile import candidate_crud, recruiter_crud, verifier_crud
from .association import invitation_crud, link_crud
from .vacancy import vacancy_crud, publication_crud
from .application import application_crud
from .interview import interview_crud, feedback_crud
from .message import message_crud
from .wallet import (
    company_wallet_crud,
    recruiter_wallet_crud,
    inherited_credit_crud,
    movement_crud,
    identity_access_crud,
)
from .study import study_crud, study_rating_crud
from .cost import cost_concept_crud
from .sourcing import sourcing_result_crud, sourcing_audit_crud

__all__ = [
    "company_crud",
    "user_role_crud",
    "candidate_crud",
    "recruiter_crud",
    "verifier_crud",
    "invitation_crud",
    "link_crud",
    "vacancy_crud",
    "publication_crud",
    "application_crud",
    "interview_crud",
    "feedback_crud",
    "message_crud",
    "company_wallet_crud",
    "recruiter_wallet_crud",
    "inherited_credit_crud",
    "movement_crud",
    "identity_access_crud",
    "study_crud",
    "study_rating_crud",
    "cost_concept_crud",
    "sourcing_result_crud",
    "sourcing_audit_crud",
]
