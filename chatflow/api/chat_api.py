from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from collections import OrderedDict
from typing import Any, Dict, Optional
import logging
import uuid

from chatflow.config import Config
from chatflow.exceptions import ChatFlowError, InvalidResponseError, SequenceLoadError
from chatflow.models import FlowResult
from chatflow.service import ChatService, resolve_data_dir

logger = logging.getLogger(__name__)

app = FastAPI(title="ChatFlow Conversation API")

# 会话只保存在进程内存中，按最近使用排序 (最旧的在前)
sessions: "OrderedDict[str, ChatService]" = OrderedDict()


class StartRequest(BaseModel):
    sequence_id: Optional[str] = Field(default=None, alias="sequenceId")

    model_config = ConfigDict(populate_by_name=True)


class ResponseRequest(BaseModel):
    message_id: int = Field(alias="messageId")
    value: Any = None

    model_config = ConfigDict(populate_by_name=True)


def _get_session(session_id: str) -> ChatService:
    service = sessions.get(session_id)
    if service is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    sessions.move_to_end(session_id)
    return service


def _store_session(session_id: str, service: ChatService):
    sessions[session_id] = service
    while len(sessions) > Config.MAX_SESSIONS:
        evicted_id, _ = sessions.popitem(last=False)
        logger.info(f"[API] session {evicted_id} evicted (limit {Config.MAX_SESSIONS})")


def _serialize(session_id: str, result: FlowResult) -> Dict[str, Any]:
    payload = result.model_dump(mode="json", by_alias=True)
    payload["sessionId"] = session_id
    return payload


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/sequences")
def list_sequences():
    service = ChatService(str(resolve_data_dir()))
    return {"sequences": service.available_sequences()}


@app.post("/sessions")
def start_session(req: Optional[StartRequest] = None):
    req = req or StartRequest()
    try:
        service = ChatService(str(resolve_data_dir()))
        result = service.start(req.sequence_id)
    except SequenceLoadError as e:
        logger.warning(f"[API] cannot start sequence {req.sequence_id!r}: {e.reason}")
        raise HTTPException(status_code=404, detail=f"Sequence '{req.sequence_id}' not found")
    except ChatFlowError as e:
        logger.error(f"[API] failed to start session: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    session_id = uuid.uuid4().hex
    _store_session(session_id, service)
    logger.info(f"[API] session {session_id} started in '{service.sequences.current_sequence_id}'")
    return _serialize(session_id, result)


@app.post("/sessions/{session_id}/responses")
def submit_response(session_id: str, req: ResponseRequest):
    service = _get_session(session_id)
    try:
        result = service.submit_user_response(req.message_id, req.value)
    except InvalidResponseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ChatFlowError as e:
        logger.error(f"[API] session {session_id} failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return _serialize(session_id, result)


@app.get("/sessions/{session_id}/state")
def session_state(session_id: str):
    return _get_session(session_id).get_state_info()


@app.delete("/sessions/{session_id}")
def end_session(session_id: str):
    if sessions.pop(session_id, None) is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    logger.info(f"[API] session {session_id} closed")
    return {"sessionId": session_id, "deleted": True}


if __name__ == "__main__":
    import uvicorn  # type: ignore
    uvicorn.run(app, host="0.0.0.0", port=8000)
