"""
API routes for changelog generation and feedback.

- POST /generate: stream a changelog for a repository URL
- POST /api/feedback: record a thumbs-up/down for a generated changelog
- GET /api/health: liveness and logging status
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from backend.context import AppContext
from utils.errors import ChangelogError, FeedbackValidationError

logger = logging.getLogger(__name__)

# Response header carrying the generation's correlation id
CORRELATION_HEADER = "X-Correlation-Id"

router = APIRouter(tags=["changelog"])


def _get_context(request: Request) -> AppContext:
    return request.app.state.context


async def _read_body(request: Request) -> Dict[str, Any]:
    """
    Read a JSON or form-encoded body as a dict.

    Raises:
        ValueError: If the body cannot be parsed
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return dict(form)

    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _generation_error(status_code: int, details: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": "An error occurred while generating the changelog",
            "details": details,
        },
    )


@router.post("/generate")
async def generate_changelog(request: Request):
    """
    Generate a changelog for a GitHub repository, streamed as plain text.

    Request Body (JSON or form):
    - prompt or url: Repository URL (e.g., "https://github.com/octocat/Hello-World")

    Returns:
    - Chunked text/plain stream of the changelog
    - X-Correlation-Id header identifying this generation (send it back
      with feedback)

    Errors:
    - 400: Missing or malformed repository URL
    - 500: GitHub, prompt store or model failure ({error, details})
    """
    context = _get_context(request)

    try:
        body = await _read_body(request)
    except Exception as e:
        logger.warning(f"Unparseable generate request body: {e}")
        return _generation_error(400, "Request body must be JSON or form data")

    # Browser completion clients send {"prompt": ...}; plain clients send {"url": ...}
    url = body.get("prompt") or body.get("url")
    if not url or not isinstance(url, str):
        return _generation_error(400, "No URL provided in request")

    try:
        handle = await run_in_threadpool(context.pipeline.run, url)
    except ChangelogError as e:
        logger.error(f"Error in POST /generate for {url}: {e.message}")
        response = _generation_error(e.status_code, e.message)
        correlation_id = getattr(e, "correlation_id", None)
        if correlation_id:
            response.headers[CORRELATION_HEADER] = correlation_id
        return response
    except Exception as e:
        logger.error(f"Unexpected error in POST /generate for {url}: {e}")
        return _generation_error(500, "Unknown error")

    # close() logs the generation even if the client leaves before the body is read
    return StreamingResponse(
        handle.chunks(),
        media_type="text/plain; charset=utf-8",
        headers={CORRELATION_HEADER: handle.correlation_id},
        background=BackgroundTask(handle.close),
    )


@router.post("/api/feedback")
async def submit_feedback(request: Request):
    """
    Record user feedback for a generated changelog.

    Request Body (JSON):
    - score: 1 (thumbs up) or 0 (thumbs down)
    - input: Repository URL the changelog was generated for
    - output: Generated changelog text
    - comment: Optional free-text comment
    - correlationId: Value of the X-Correlation-Id header from /generate

    Returns:
    - success: true
    - feedbackId: Id of this feedback record
    - category: "positive" or "negative"

    Errors:
    - 400: Validation failure ({error} names the field)
    - 500: Feedback could not be logged
    """
    context = _get_context(request)

    try:
        body = await _read_body(request)
    except Exception as e:
        logger.warning(f"Unparseable feedback request body: {e}")
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

    try:
        receipt = await run_in_threadpool(
            context.feedback_recorder.record_feedback,
            score=body.get("score"),
            input=body.get("input"),
            output=body.get("output"),
            comment=body.get("comment"),
            correlation_id=body.get("correlationId"),
        )
    except FeedbackValidationError as e:
        logger.info(f"Rejected feedback ({e.field}): {e.message}")
        return JSONResponse(status_code=400, content={"error": e.message})
    except ChangelogError as e:
        logger.error(f"Error processing feedback: {e.message}")
        return JSONResponse(status_code=e.status_code, content={"error": "Failed to process feedback"})
    except Exception as e:
        logger.error(f"Unexpected error processing feedback: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to process feedback"})

    return {
        "success": True,
        "feedbackId": receipt.feedback_id,
        "category": receipt.category,
    }


@router.get("/api/health")
def health(request: Request):
    """Liveness check; reports whether feedback logging is available."""
    context = _get_context(request)
    return {
        "status": "ok",
        "logging": context.event_logger.initialized,
    }
