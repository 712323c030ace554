"""Realtime collection feed for admin views."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool

from syllabuser.core.database import SessionLocal
from syllabuser.core.dependencies import load_session_context
from syllabuser.core.realtime import watch_collection
from syllabuser.models.account import Account
from syllabuser.services.documents import COLLECTION_MODELS, DocumentStore
from syllabuser.services.identity import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_user(token: str) -> Account | None:
    with SessionLocal() as db:
        return IdentityProvider(db).current_user(token)


@router.websocket("/{collection}")
async def watch(
    websocket: WebSocket,
    collection: str,
    token: str = Query(...),
):
    """
    Push the full collection on connect and again after every change.
    """
    store: DocumentStore = websocket.app.state.store

    user = await run_in_threadpool(_resolve_user, token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    context = await load_session_context(store, user)
    if not context.is_admin or collection not in COLLECTION_MODELS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async def push() -> None:
        documents = await store.list_documents(collection, order_by="-created_at")
        await websocket.send_json({"collection": collection, "documents": jsonable_encoder(documents)})

    await push()
    stop = watch_collection(store.subscribe, collection, push)
    logger.info(f"Admin {user.id} watching {collection}")
    try:
        while True:
            # Clients only keep the socket open; incoming frames are ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Admin {user.id} stopped watching {collection}")
    finally:
        stop()
