"""
API 请求和响应模型
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class DiagramRequest(BaseModel):
    """生成图请求"""
    workflow: Dict[str, Any] = Field(..., description="工作流定义（JSON）")
    show_legend: Optional[bool] = Field(None, description="是否绘制图例，默认使用服务配置")


class WorkflowValidateRequest(BaseModel):
    """验证工作流请求"""
    workflow: Dict[str, Any] = Field(..., description="工作流定义（JSON）")


class WorkflowSummaryResponse(BaseModel):
    """工作流摘要响应"""
    id: str = Field(..., description="工作流ID")
    name: str = Field(..., description="工作流名称")
    version: str = Field(..., description="版本号")
    state_count: int = Field(..., description="状态数量")
    starting_state: Optional[str] = Field(None, description="起始状态")
    consumed_events: List[str] = Field(default_factory=list, description="使用的消费事件")
    produced_events: List[str] = Field(default_factory=list, description="使用的产生事件")
    node_count: int = Field(..., description="图节点数量")
    edge_count: int = Field(..., description="图边数量")
    back_edge_count: int = Field(..., description="回边（循环）数量")


class ErrorResponse(BaseModel):
    """错误响应"""
    error: str = Field(..., description="错误类型")
    message: str = Field(..., description="错误信息")
