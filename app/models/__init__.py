"""
Modelos SQLModel

SQLModel unifica el modelo ORM y el esquema Pydantic
"""
from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utc_now
from .company import Company, CompanyCreate, CompanyUpdate, CompanyResponse, UserRole, AppRole
from .profile import (
    CandidateProfile, CandidateProfileCreate, CandidateProfileUpdate, CandidateProfileResponse,
    RecruiterProfile, RecruiterProfileCreate, RecruiterProfileUpdate, RecruiterProfileResponse,
    VerifierProfile, VerifierProfileCreate, VerifierProfileResponse,
    RecruiterType, ExperienceLevel,
)
from .association import (
    RecruiterInvitation, RecruiterCompanyLink, InvitationCreate, InvitationResponse, LinkResponse,
    InvitationState, LinkState, LinkType,
)
from .vacancy import (
    Vacancy, VacancyCreate, VacancyUpdate, VacancyAssign, VacancyResponse, CloseRequest,
    MarketplacePublication, PublicationCreate, PublicationResponse,
    VacancyStatus, WorkMode,
)
from .application import (
    Application, ApplicationCreate, ApplicationResponse, ApplicantResponse, StageChange,
    ApplicationStatus, ApplicationStage,
)
from .interview import (
    Interview, InterviewCreate, InterviewReject, InterviewReschedule, InterviewPostpone,
    InterviewComplete, InterviewResponse, InterviewState, InterviewType,
    CandidateFeedback, FeedbackCreate, FeedbackResponse,
)
from .message import ApplicationMessage, MessageCreate, ApplicationMessageResponse
from .wallet import (
    CompanyWallet, RecruiterWallet, InheritedCredit, CreditMovement, IdentityAccess,
    CompanyWalletResponse, RecruiterWalletResponse, InheritedCreditResponse, CreditMovementResponse,
    CreditTransfer, CreditReturn, CheckoutCreate, PaymentVerify, IdentityUnlock,
    PaymentOrigin, CreditAction, ExecutionMethod, WalletType,
)
from .study import (
    SocioeconomicStudy, StudyRating, StudyCreate, StudyAssign, StudyCapture, StudyRatingCreate,
    StudyResponse, StudyRatingResponse, StudyStatus,
)
from .cost import CostConcept, CostConceptCreate, CostConceptUpdate, CostConceptResponse
from .sourcing import (
    SourcingResult, SourcingAudit, SourcingRequest, SourcingStateUpdate, SourcingResultResponse,
    SourcingState,
)

__all__ = [
    # Base
    "SQLModelBase",
    "TimestampMixin",
    "IDMixin",
    "TimestampResponse",
    "utc_now",
    # Company
    "Company",
    "CompanyCreate",
    "CompanyUpdate",
    "CompanyResponse",
    "UserRole",
    "AppRole",
    # Profiles
    "CandidateProfile",
    "CandidateProfileCreate",
    "CandidateProfileUpdate",
    "CandidateProfileResponse",
    "RecruiterProfile",
    "RecruiterProfileCreate",
    "RecruiterProfileUpdate",
    "RecruiterProfileResponse",
    "VerifierProfile",
    "VerifierProfileCreate",
    "VerifierProfileResponse",
    "RecruiterType",
    "ExperienceLevel",
    # Association
    "RecruiterInvitation",
    "RecruiterCompanyLink",
    "InvitationCreate",
    "InvitationResponse",
    "LinkResponse",
    "InvitationState",
    "LinkState",
    "LinkType",
    # Vacancy
    "Vacancy",
    "VacancyCreate",
    "VacancyUpdate",
    "VacancyAssign",
    "VacancyResponse",
    "CloseRequest",
    "MarketplacePublication",
    "PublicationCreate",
    "PublicationResponse",
    "VacancyStatus",
    "WorkMode",
    # Application
    "Application",
    "ApplicationCreate",
    "ApplicationResponse",
    "ApplicantResponse",
    "StageChange",
    "ApplicationStatus",
    "ApplicationStage",
    # Interview
    "Interview",
    "InterviewCreate",
    "InterviewReject",
    "InterviewReschedule",
    "InterviewPostpone",
    "InterviewComplete",
    "InterviewResponse",
    "InterviewState",
    "InterviewType",
    "CandidateFeedback",
    "FeedbackCreate",
    "FeedbackResponse",
    # Message
    "ApplicationMessage",
    "MessageCreate",
    "ApplicationMessageResponse",
    # Wallet
    "CompanyWallet",
    "RecruiterWallet",
    "InheritedCredit",
    "CreditMovement",
    "IdentityAccess",
    "CompanyWalletResponse",
    "RecruiterWalletResponse",
    "InheritedCreditResponse",
    "CreditMovementResponse",
    "CreditTransfer",
    "CreditReturn",
    "CheckoutCreate",
    "PaymentVerify",
    "IdentityUnlock",
    "PaymentOrigin",
    "CreditAction",
    "ExecutionMethod",
    "WalletType",
    # Study
    "SocioeconomicStudy",
    "StudyRating",
    "StudyCreate",
    "StudyAssign",
    "StudyCapture",
    "StudyRatingCreate",
    "StudyResponse",
    "StudyRatingResponse",
    "StudyStatus",
    # Cost
    "CostConcept",
    "CostConceptCreate",
    "CostConceptUpdate",
    "CostConceptResponse",
    # Sourcing
    "SourcingResult",
    "SourcingAudit",
    "SourcingRequest",
    "SourcingStateUpdate",
    "SourcingResultResponse",
    "SourcingState",
]
