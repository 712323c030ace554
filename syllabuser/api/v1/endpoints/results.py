"""Result endpoints."""

from io import BytesIO

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from syllabuser.core.dependencies import AdminContext, Store, StudentContext
from syllabuser.schemas.result import ResultResponse, ResultReview
from syllabuser.services.result import ResultService

router = APIRouter()


@router.get("/me", response_model=list[ResultResponse])
async def list_my_results(context: StudentContext, store: Store):
    """
    The student's results, newest first.
    """
    return await ResultService(store).list_student_results(context.user_id)


@router.get("", response_model=list[ResultResponse])
async def list_results(
    context: AdminContext,
    store: Store,
    exam_id: str | None = None,
    course_id: str | None = None,
):
    """
    Results ranked by net mark. Admin only.
    """
    return await ResultService(store).list_results(exam_id=exam_id, course_id=course_id)


@router.get("/export")
async def export_results(exam_id: str, context: AdminContext, store: Store):
    """
    Download an exam's ranked results as an Excel workbook. Admin only.
    """
    content, filename = await ResultService(store).export_results(exam_id)
    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{result_id}", response_model=ResultReview)
async def review_result(result_id: str, context: StudentContext, store: Store):
    """
    Question-by-question review of a result.
    """
    student_id = None if context.is_admin else context.user_id
    return await ResultService(store).review(result_id, student_id=student_id)
