"""Result listing, review and export service."""

import logging
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from syllabuser.core.exceptions import NotFoundError
from syllabuser.services.documents import Collections, DocumentStore
from syllabuser.services.exam_admin import question_options

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ("Rank", 8),
    ("Student Name", 28),
    ("Correct", 10),
    ("Wrong", 10),
    ("Unanswered", 12),
    ("Total", 10),
    ("Net Mark", 12),
    ("Submitted At", 22),
]


def _rank_key(result: dict[str, Any]) -> tuple:
    return (-result["net_mark"], result["submitted_at"], result["id"])


class ResultService:
    """Results of submitted exam attempts."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_result(self, result_id: str) -> dict[str, Any]:
        result = await self.store.find_document(Collections.RESULTS, result_id)
        if result is None:
            raise NotFoundError("Result", result_id)
        return result

    async def list_student_results(self, student_id: str) -> list[dict[str, Any]]:
        """A student's own results, newest first."""
        return await self.store.list_documents(
            Collections.RESULTS,
            filters={"student_id": student_id},
            order_by=["-submitted_at", "id"],
        )

    async def review(self, result_id: str, student_id: str | None = None) -> dict[str, Any]:
        """Result with each question, the chosen option and the answer key.

        ``student_id`` restricts the lookup to that student's own results.
        """
        result = await self.get_result(result_id)
        if student_id is not None and result["student_id"] != student_id:
            raise NotFoundError("Result", result_id)

        questions = await self.store.list_documents(
            Collections.QUESTIONS,
            filters={"exam_id": result["exam_id"]},
            order_by=["created_at", "id"],
        )
        answers = result.get("answer_snapshot") or {}

        reviewed = []
        for number, question in enumerate(questions, start=1):
            selected = answers.get(question["id"])
            reviewed.append(
                {
                    "id": question["id"],
                    "number": number,
                    "text": question["text"],
                    "options": question_options(question),
                    "correct_option": question["correct_option"],
                    "selected_option": selected,
                    "is_correct": selected == question["correct_option"],
                    "explanation": question.get("explanation"),
                }
            )
        return {"result": result, "questions": reviewed}

    async def list_results(
        self,
        exam_id: str | None = None,
        course_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """Admin listing, best net mark first, student names filled in."""
        filters: dict[str, Any] = {}
        if exam_id:
            filters["exam_id"] = exam_id
        if course_id:
            filters["course_id"] = course_id

        results = await self.store.list_documents(Collections.RESULTS, filters=filters)
        results.sort(key=_rank_key)

        missing = sorted({r["student_id"] for r in results if not r.get("student_name")})
        if missing:
            profiles = await self.store.list_documents(Collections.USERS, filters={"id": missing})
            names = {profile["id"]: profile["name"] for profile in profiles}
            results = [
                {**r, "student_name": r.get("student_name") or names.get(r["student_id"], "Unknown")}
                for r in results
            ]
        return results

    async def export_results(self, exam_id: str) -> tuple[bytes, str]:
        """Excel workbook of an exam's ranked results, with a filename."""
        exam = await self.store.find_document(Collections.EXAMS, exam_id)
        if exam is None:
            raise NotFoundError("Exam", exam_id)
        results = await self.list_results(exam_id=exam_id)

        wb = Workbook()
        ws = wb.active
        ws.title = "Results"

        # Styles
        title_font = Font(bold=True, size=14)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )
        center_align = Alignment(horizontal="center", vertical="center")

        last_column = get_column_letter(len(EXPORT_COLUMNS))
        ws.merge_cells(f"A1:{last_column}1")
        title_cell = ws.cell(row=1, column=1, value=f"{exam['title']} - Results")
        title_cell.font = title_font
        title_cell.alignment = center_align
        title_cell.fill = PatternFill(start_color="B4C6E7", end_color="B4C6E7", fill_type="solid")

        for col_idx, (header, width) in enumerate(EXPORT_COLUMNS, start=1):
            cell = ws.cell(row=2, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = center_align
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        for rank, result in enumerate(results, start=1):
            row = [
                rank,
                result.get("student_name") or "Unknown",
                result["correct_answers"],
                result["wrong_answers"],
                result["unanswered"],
                result["total_questions"],
                round(result["net_mark"], 2),
                result["submitted_at"].strftime("%Y-%m-%d %H:%M:%S"),
            ]
            for col_idx, value in enumerate(row, start=1):
                ws.cell(row=rank + 2, column=col_idx, value=value).border = thin_border

        output = BytesIO()
        wb.save(output)
        output.seek(0)

        safe_title = "".join(ch if ch.isalnum() else "_" for ch in exam["title"]).strip("_") or "exam"
        logger.info(f"Exported {len(results)} results for exam {exam_id}")
        return output.getvalue(), f"{safe_title}_results.xlsx"
