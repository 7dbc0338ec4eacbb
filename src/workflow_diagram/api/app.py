"""
FastAPI 应用主文件
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from .. import __version__
from .routers import diagrams, workflows
from .middleware import RequestLoggingMiddleware


logger = logging.getLogger(__name__)


app = FastAPI(
    title="Workflow Diagram API",
    description="工作流定义验证与 SVG 图生成 API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# 注册路由
app.include_router(diagrams.router, prefix="/api/v1/diagrams", tags=["diagrams"])
app.include_router(workflows.router, prefix="/api/v1/workflows", tags=["workflows"])


# 全局异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常处理器"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request.state.request_id if hasattr(request.state, "request_id") else None
        }
    )


@app.get("/", tags=["root"])
async def root():
    """API根路径"""
    return {
        "name": "Workflow Diagram API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", tags=["root"])
async def health():
    """健康检查"""
    return {"status": "healthy"}
