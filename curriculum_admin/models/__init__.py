"""SQLAlchemy ORM models for the curriculum admin backend."""

from curriculum_admin.models.base import Base
from curriculum_admin.models.chapter import Chapter
from curriculum_admin.models.content import Content
from curriculum_admin.models.enrollment import UserEnrollment
from curriculum_admin.models.profile import Profile, UserAccount
from curriculum_admin.models.quiz import QuizAttempt, QuizQuestion
from curriculum_admin.models.school import School
from curriculum_admin.models.subject import Subject, SubjectTeacher
from curriculum_admin.models.term import Term
from curriculum_admin.models.week import Week

__all__ = [
    "Base",
    "School",
    "Subject",
    "SubjectTeacher",
    "Term",
    "Week",
    "Chapter",
    "Content",
    "QuizQuestion",
    "QuizAttempt",
    "UserAccount",
    "Profile",
    "UserEnrollment",
]
