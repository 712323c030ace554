"""Exam endpoints: student listings and admin authoring."""

from typing import Literal

from fastapi import APIRouter, Query, status

from syllabuser.core.dependencies import AdminContext, Store, StudentContext
from syllabuser.schemas.common import MessageResponse
from syllabuser.schemas.exam import (
    ExamCreate,
    ExamCreatedResponse,
    ExamPaperResponse,
    ExamResponse,
    QuestionResponse,
)
from syllabuser.services.exam_admin import ExamService

router = APIRouter()


@router.get("", response_model=list[ExamResponse])
async def list_my_exams(context: StudentContext, store: Store):
    """
    Exams of the courses the student is enrolled in.
    """
    return await ExamService(store).list_student_exams(context.profile)


@router.get("/admin", response_model=list[ExamResponse])
async def list_all_exams(context: AdminContext, store: Store, course_id: str | None = None):
    """
    All exams, newest first. Admin only.
    """
    return await ExamService(store).list_exams(course_id)


@router.post("", response_model=ExamCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_exam(request: ExamCreate, context: AdminContext, store: Store):
    """
    Create an exam together with its question batch. Admin only.

    Answers may be given as "Option A".."Option D", a single letter, the exact
    option text or an option number. A batch with any unmappable answer is
    rejected and nothing is written.
    """
    exam, count = await ExamService(store).create_exam(request)
    return ExamCreatedResponse(exam=exam, question_count=count)


@router.get("/{exam_id}", response_model=ExamResponse)
async def get_exam(exam_id: str, context: StudentContext, store: Store):
    service = ExamService(store)
    if context.is_admin:
        return await service.get_exam(exam_id)
    return await service.get_student_exam(exam_id, context.profile)


@router.get("/{exam_id}/questions", response_model=list[QuestionResponse])
async def list_exam_questions(exam_id: str, context: AdminContext, store: Store):
    service = ExamService(store)
    await service.get_exam(exam_id)
    return await service.list_questions(exam_id)


@router.get("/{exam_id}/paper", response_model=ExamPaperResponse)
async def get_exam_paper(
    exam_id: str,
    context: AdminContext,
    store: Store,
    mode: Literal["questions", "solutions"] = Query("questions"),
):
    """
    Print view of an exam, with or without the answer key. Admin only.
    """
    return await ExamService(store).get_paper(exam_id, mode)


@router.delete("/{exam_id}", response_model=MessageResponse)
async def delete_exam(exam_id: str, context: AdminContext, store: Store):
    """
    Delete an exam and all of its questions. Admin only.
    """
    removed = await ExamService(store).delete_exam(exam_id)
    return MessageResponse(message=f"Exam deleted with {removed} question(s)")
