"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from database.models.jobs import Job, JobStatus, WorkType
from database.models.candidates import Candidate
from database.models.applications import Application, ApplicationStatus
from database.models.interviews import (
    Interview,
    InterviewConfig,
    InterviewRound,
    InterviewStatus,
    InterviewType,
)
from database.models.tokens import InterviewToken, ScreeningToken
from database.models.evaluations import Evaluation, Recommendation
from database.models.decisions import DecisionMatrix, DecisionType
from database.models.offers import JobOffer, OfferStatus
from database.models.onboarding import (
    OnboardingCategory,
    OnboardingTask,
    OnboardingTaskStatus,
)
from database.models.drives import (
    AptitudeQuestion,
    DriveCandidate,
    DriveCandidateStatus,
    DriveSession,
    DriveStatus,
    QualificationStatus,
    RegistrationStatus,
    TestSession,
    TestSessionStatus,
)
from database.models.bulk import BulkFileStatus, BulkJob, BulkJobFile

__all__ = [
    "Job",
    "JobStatus",
    "WorkType",
    "Candidate",
    "Application",
    "ApplicationStatus",
    "Interview",
    "InterviewConfig",
    "InterviewRound",
    "InterviewStatus",
    "InterviewType",
    "InterviewToken",
    "ScreeningToken",
    "Evaluation",
    "Recommendation",
    "DecisionMatrix",
    "DecisionType",
    "JobOffer",
    "OfferStatus",
    "OnboardingCategory",
    "OnboardingTask",
    "OnboardingTaskStatus",
    "AptitudeQuestion",
    "DriveCandidate",
    "DriveCandidateStatus",
    "DriveSession",
    "DriveStatus",
    "QualificationStatus",
    "RegistrationStatus",
    "TestSession",
    "TestSessionStatus",
    "BulkFileStatus",
    "BulkJob",
    "BulkJobFile",
]
