import hmac
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.config import VAPI_WEBHOOK_SECRET, EVALUATION_FUNCTION_NAME
from app.database import get_db
from app.services.result_recorder import record_evaluation, RecorderError
from app.services.vapi_payload import (
    TOOL_CALLS_EVENT,
    InterviewEvaluation,
    InvalidToolArguments,
    decode_arguments,
    parse_webhook_event,
)

router = APIRouter(prefix="/api", tags=["webhook"])
logger = logging.getLogger(__name__)


def _check_secret(request: Request) -> None:
    if not VAPI_WEBHOOK_SECRET:
        return
    supplied = request.headers.get("x-vapi-secret", "")
    if not hmac.compare_digest(supplied, VAPI_WEBHOOK_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook secret",
        )


@router.post("/webhook")
async def vapi_webhook(request: Request, db: Session = Depends(get_db)):
    """Receive voice-platform server events and record interview evaluations."""
    _check_secret(request)

    try:
        body = await request.json()
    except ValueError as e:
        logger.error("[Webhook] Unreadable body: %s", e)
        return JSONResponse(status_code=500, content={"error": "Request body is not valid JSON"})

    event = parse_webhook_event(body)
    logger.info("[Webhook] Incoming type: %s, call id: %s", event.type, event.call_id)

    if event.type != TOOL_CALLS_EVENT:
        return {"received": True}

    tool_call = event.find_tool_call(EVALUATION_FUNCTION_NAME)
    if tool_call is None:
        return {"received": True}

    try:
        arguments = decode_arguments(tool_call.arguments)
        evaluation = InterviewEvaluation.from_arguments(arguments)
        record = record_evaluation(db, event.call_id, evaluation)
    except (InvalidToolArguments, RecorderError) as e:
        logger.error("[Webhook] Rejected %s: %s", EVALUATION_FUNCTION_NAME, e)
        return JSONResponse(status_code=500, content={"error": str(e)})
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("[Webhook] Storage error for call %s: %s", event.call_id, e)
        return JSONResponse(status_code=500, content={"error": "Failed to store interview result"})

    return {
        "success": True,
        "id": record.id,
        "results": [
            {
                "toolCallId": tool_call.id,
                "result": f"Interview evaluation saved with score {record.score}.",
            }
        ],
    }
