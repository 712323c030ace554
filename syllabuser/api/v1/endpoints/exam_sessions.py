"""Exam-taking endpoints.

The client renders the state returned here and forwards answer selections,
navigation, submit and blocked input events.
"""

from fastapi import APIRouter, status

from syllabuser.core.dependencies import Registry, StudentContext
from syllabuser.schemas.common import MessageResponse
from syllabuser.schemas.exam_session import (
    AnswerRequest,
    ExamSessionState,
    IntegrityEventRequest,
    IntegrityEventResponse,
    NavigateRequest,
    StartSessionRequest,
    SubmitRequest,
    SubmitResponse,
)
from syllabuser.services.integrity import InputEvent
from syllabuser.services.submission import SubmissionTrigger

router = APIRouter()


@router.post("", response_model=ExamSessionState, status_code=status.HTTP_201_CREATED)
async def start_session(request: StartSessionRequest, context: StudentContext, registry: Registry):
    """
    Start an exam, or resume the student's running session for it.

    A session whose time has already run out is submitted immediately.
    """
    session = await registry.open(context.user_id, request.exam_id, student_name=context.display_name)
    return session.state()


@router.get("/{session_id}", response_model=ExamSessionState)
async def get_session_state(session_id: str, context: StudentContext, registry: Registry):
    return registry.get(session_id, context.user_id).state()


@router.put("/{session_id}/answers", response_model=ExamSessionState)
async def select_answer(
    session_id: str,
    request: AnswerRequest,
    context: StudentContext,
    registry: Registry,
):
    session = registry.get(session_id, context.user_id)
    session.select_answer(request.question_id, request.option_index)
    return session.state()


@router.post("/{session_id}/next", response_model=ExamSessionState)
async def next_question(session_id: str, context: StudentContext, registry: Registry):
    session = registry.get(session_id, context.user_id)
    session.next_question()
    return session.state()


@router.post("/{session_id}/previous", response_model=ExamSessionState)
async def previous_question(session_id: str, context: StudentContext, registry: Registry):
    session = registry.get(session_id, context.user_id)
    session.previous_question()
    return session.state()


@router.put("/{session_id}/cursor", response_model=ExamSessionState)
async def go_to_question(
    session_id: str,
    request: NavigateRequest,
    context: StudentContext,
    registry: Registry,
):
    session = registry.get(session_id, context.user_id)
    session.go_to_question(request.index)
    return session.state()


@router.post("/{session_id}/submit", response_model=SubmitResponse)
async def submit_session(
    session_id: str,
    context: StudentContext,
    registry: Registry,
    request: SubmitRequest | None = None,
):
    """
    Submit the exam. Repeated or concurrent submits are not accepted again.
    """
    session = registry.get(session_id, context.user_id)
    trigger = SubmissionTrigger(request.trigger if request else SubmissionTrigger.SUBMIT.value)
    outcome = await session.submit(trigger)
    return SubmitResponse(accepted=outcome.accepted, trigger=outcome.trigger.value, state=session.state())


@router.post("/{session_id}/integrity-events", response_model=IntegrityEventResponse)
async def report_integrity_event(
    session_id: str,
    request: IntegrityEventRequest,
    context: StudentContext,
    registry: Registry,
):
    """
    Tell the client whether to suppress a context-menu or shortcut event.
    """
    session = registry.get(session_id, context.user_id)
    suppress = session.report_input(InputEvent(**request.model_dump()))
    return IntegrityEventResponse(suppress=suppress, blocked_count=session.integrity.blocked_count)


@router.delete("/{session_id}", response_model=MessageResponse)
async def close_session(session_id: str, context: StudentContext, registry: Registry):
    """
    Leave the exam page without submitting.
    """
    await registry.close(session_id, context.user_id)
    return MessageResponse(message="Exam session closed")
