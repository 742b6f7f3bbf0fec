"""
Chat relay API - forwards a single message to the completion API
"""
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from zest_tasks.services.chat_service import UpstreamError, chat_service
from zest_tasks.utils.logger import get_logger
from zest_tasks.utils.validators import ChatRequestError, validate_chat_message

logger = get_logger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _reply(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


@router.options("/")
async def chat_preflight():
    """CORS preflight - answered without touching the body"""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/")
async def chat(request: Request):
    """
    Relay {"message": str} to the assistant and return {"text": str}.
    Stateless: nothing about earlier messages is kept.
    """
    try:
        try:
            body = await request.json()
        except ValueError as e:
            logger.error(f"Failed to parse request body: {e}")
            return _reply({"error": "Invalid JSON in request body"}, 400)
        logger.debug(f"Request body: {body}")

        try:
            message = validate_chat_message(body)
        except ChatRequestError as e:
            logger.error("Missing or invalid message field")
            return _reply({"error": str(e)}, 400)

        text = await chat_service.complete(message)
        return _reply({"text": text})

    except UpstreamError as e:
        return _reply({"error": e.body}, e.status_code)
    except Exception as e:
        logger.exception("Error in chat function")
        return _reply({"error": str(e) or "An error occurred"}, 500)
