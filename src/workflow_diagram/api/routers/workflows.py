"""
工作流验证 API 路由
"""
from fastapi import APIRouter, Depends
import logging

from ..models import WorkflowValidateRequest, WorkflowSummaryResponse
from ..dependencies import get_parser
from .diagrams import to_http_exception
from ...core.parser import WorkflowParser
from ...diagram.builder import StateGraphBuilder
from ...diagram.layout import LayoutEngine
from ...exceptions import WorkflowDiagramError
from ... import utils


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/validate", response_model=WorkflowSummaryResponse)
async def validate_workflow(
    request: WorkflowValidateRequest,
    parser: WorkflowParser = Depends(get_parser)
) -> WorkflowSummaryResponse:
    """解析并构建状态图，返回工作流摘要"""
    try:
        workflow = parser.parse(request.workflow)
        graph = LayoutEngine().layout(StateGraphBuilder().build(workflow))
    except WorkflowDiagramError as e:
        raise to_http_exception(e)

    starting_state = utils.get_starting_state(workflow)
    return WorkflowSummaryResponse(
        id=workflow.id,
        name=workflow.name,
        version=workflow.version,
        state_count=len(workflow.states),
        starting_state=starting_state.name if starting_state else None,
        consumed_events=[e.name for e in utils.get_workflow_consumed_events(workflow)],
        produced_events=[e.name for e in utils.get_workflow_produced_events(workflow)],
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        back_edge_count=len(graph.back_edges)
    )
