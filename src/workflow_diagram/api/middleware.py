"""
API 中间件
"""
import time
import uuid
import logging
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .. import __version__
from .routers.diagrams import SVG_MEDIA_TYPE


logger = logging.getLogger(__name__)

RENDERER_HEADER = "X-Diagram-Renderer"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件

    沿用客户端传入的 X-Request-ID（没有则生成），记录耗时；
    SVG 响应额外记录图大小并标注渲染器版本。
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        logger.debug(f"{request.method} {request.url.path} [request_id={request_id}]")

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{duration:.4f}"

        content_type = response.headers.get("content-type", "")
        if content_type.startswith(SVG_MEDIA_TYPE):
            response.headers[RENDERER_HEADER] = f"workflow-diagram/{__version__}"
            logger.info(
                f"Rendered diagram for {request.url.path} "
                f"[request_id={request_id}] "
                f"[bytes={response.headers.get('content-length', '?')}] "
                f"[duration={duration:.3f}s]"
            )
        else:
            logger.info(
                f"{request.method} {request.url.path} "
                f"[request_id={request_id}] "
                f"[status={response.status_code}] "
                f"[duration={duration:.3f}s]"
            )

        return response
