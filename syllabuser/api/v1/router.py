"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from syllabuser.api.v1.endpoints import (
    auth,
    courses,
    exam_sessions,
    exams,
    realtime,
    results,
    routines,
    students,
)

api_router = APIRouter()

# Authentication
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# Catalogue
api_router.include_router(
    courses.router,
    prefix="/courses",
    tags=["Courses"],
)

# Student profiles and enrollment
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
)

# Exam authoring and listings
api_router.include_router(
    exams.router,
    prefix="/exams",
    tags=["Exams"],
)

# Exam taking
api_router.include_router(
    exam_sessions.router,
    prefix="/exam-sessions",
    tags=["Exam Sessions"],
)

# Results
api_router.include_router(
    results.router,
    prefix="/results",
    tags=["Results"],
)

# Routines
api_router.include_router(
    routines.router,
    prefix="/routines",
    tags=["Routines"],
)

# Admin live views
api_router.include_router(
    realtime.router,
    prefix="/realtime",
    tags=["Realtime"],
)
