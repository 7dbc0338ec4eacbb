"""
工作流图 API 路由
"""
from fastapi import APIRouter, HTTPException, Depends, status, UploadFile, File, Response
from typing import Any, Optional
import logging

from ..models import DiagramRequest
from ..dependencies import get_parser, get_diagram_config
from ...config import DiagramConfig
from ...core.parser import WorkflowParser
from ...diagram.facade import WorkflowDiagram
from ...exceptions import (
    WorkflowDiagramError, WorkflowParseError, WorkflowValidationError,
    ConfigurationError, WorkflowReferenceError, UnsupportedStateError
)


logger = logging.getLogger(__name__)
router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml"

_ERROR_CODES = [
    (WorkflowParseError, status.HTTP_400_BAD_REQUEST, "parse_error"),
    (WorkflowValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (WorkflowReferenceError, status.HTTP_422_UNPROCESSABLE_ENTITY, "reference_error"),
    (UnsupportedStateError, status.HTTP_422_UNPROCESSABLE_ENTITY, "unsupported_state"),
    (ConfigurationError, status.HTTP_422_UNPROCESSABLE_ENTITY, "configuration_error"),
]


def to_http_exception(exc: WorkflowDiagramError) -> HTTPException:
    """将工作流异常映射为 HTTP 异常"""
    for error_type, status_code, code in _ERROR_CODES:
        if isinstance(exc, error_type):
            return HTTPException(
                status_code=status_code,
                detail={"error": code, "message": str(exc)}
            )
    logger.error(f"Unexpected workflow error: {exc}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "diagram_failed", "message": str(exc)}
    )


def _render_diagram(
    source: Any,
    parser: WorkflowParser,
    config: DiagramConfig,
    show_legend: Optional[bool]
) -> Response:
    try:
        if isinstance(source, str):
            workflow = parser.parse_string(source)
        else:
            workflow = parser.parse(source)
        svg = WorkflowDiagram(workflow, config=config, show_legend=show_legend).get_svg_diagram()
    except WorkflowDiagramError as e:
        raise to_http_exception(e)
    return Response(content=svg, media_type=SVG_MEDIA_TYPE)


@router.post(
    "",
    response_class=Response,
    responses={200: {"content": {SVG_MEDIA_TYPE: {}}, "description": "SVG diagram"}}
)
async def create_diagram(
    request: DiagramRequest,
    parser: WorkflowParser = Depends(get_parser),
    config: DiagramConfig = Depends(get_diagram_config)
) -> Response:
    """根据 JSON 工作流定义生成 SVG 图"""
    return _render_diagram(request.workflow, parser, config, request.show_legend)


@router.post(
    "/upload",
    response_class=Response,
    responses={200: {"content": {SVG_MEDIA_TYPE: {}}, "description": "SVG diagram"}}
)
async def upload_diagram(
    file: UploadFile = File(...),
    show_legend: Optional[bool] = None,
    parser: WorkflowParser = Depends(get_parser),
    config: DiagramConfig = Depends(get_diagram_config)
) -> Response:
    """上传工作流文件（YAML/JSON）并生成 SVG 图"""
    filename = file.filename or ""
    if not filename.endswith(('.yaml', '.yml', '.json')):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_file_type",
                "message": "Only YAML and JSON files are supported"
            }
        )

    content = await file.read()
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_encoding", "message": "Workflow file must be UTF-8 encoded"}
        )

    logger.info(f"Rendering uploaded workflow file '{filename}'")
    return _render_diagram(text, parser, config, show_legend)
