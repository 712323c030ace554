"""Database models package."""

from syllabuser.models.account import Account, AuthSession
from syllabuser.models.course import Category, Course
from syllabuser.models.exam import Exam, Question
from syllabuser.models.profile import Admin, Profile
from syllabuser.models.result import Result
from syllabuser.models.routine import Routine

__all__ = [
    # Identity
    "Account",
    "AuthSession",
    # Profiles
    "Profile",
    "Admin",
    # Catalogue
    "Category",
    "Course",
    # Exams
    "Exam",
    "Question",
    "Result",
    # Routines
    "Routine",
]
