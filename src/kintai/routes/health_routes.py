"""
Liveness endpoints.

Hosting platforms that put idle processes to sleep ping ``/`` to keep the
bot awake; ``POST /`` with ``type=wake`` is the wake-up call.
"""
import time
from datetime import datetime

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from kintai.logger import get_logger

logger = get_logger(__name__)
start_time = time.time()


async def liveness(request: Request) -> Response:
    """
    Plain-text liveness check.

    GET always answers 200. POST reads a form body and logs wake-up pings.
    """
    if request.method == "POST":
        if not await request.body():
            return PlainTextResponse("No post data")

        form = await request.form()
        post_type = form.get("type", "")
        logger.info(f"post:{post_type}")
        if post_type == "wake":
            logger.info("Woke up in post")
        return Response(status_code=200)

    return PlainTextResponse("Discord Bot is Operating!")


async def health_check(request: Request) -> JSONResponse:
    """
    Basic health check endpoint.

    Returns 200 if service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "uptime_seconds": int(time.time() - start_time),
    })
