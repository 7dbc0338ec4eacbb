"""
API 端点测试
"""
import json
import pytest
from fastapi.testclient import TestClient

from workflow_diagram import __version__
from workflow_diagram.api import app


@pytest.fixture
def client():
    """创建测试客户端"""
    with TestClient(app) as client:
        yield client


def _load_json(examples_dir, name):
    return json.loads((examples_dir / f"{name}.json").read_text(encoding="utf-8"))


class TestDiagramAPI:
    """图生成 API 测试类"""

    def test_create_diagram(self, client, examples_dir):
        """测试生成 SVG 图"""
        response = client.post(
            "/api/v1/diagrams",
            json={"workflow": _load_json(examples_dir, "applicantrequest")}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert "<svg" in response.text
        assert 'data-node-id="CheckApplication"' in response.text
        assert "X-Request-ID" in response.headers

    def test_create_diagram_with_legend(self, client, examples_dir):
        response = client.post(
            "/api/v1/diagrams",
            json={"workflow": _load_json(examples_dir, "helloworld"), "show_legend": True}
        )

        assert response.status_code == 200
        assert 'class="legend"' in response.text

    def test_dangling_reference(self, client):
        """测试转换目标不存在返回 422"""
        response = client.post("/api/v1/diagrams", json={
            "workflow": {
                "id": "dangling",
                "name": "Dangling",
                "states": [{"name": "A", "type": "inject", "transition": "Nowhere"}]
            }
        })

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "reference_error"
        assert "Nowhere" in detail["message"]

    def test_unsupported_state(self, client):
        response = client.post("/api/v1/diagrams", json={
            "workflow": {
                "id": "odd",
                "name": "Odd",
                "states": [{"name": "A", "type": "teleport", "end": True}]
            }
        })

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "unsupported_state"

    def test_invalid_definition(self, client):
        """测试不符合 schema 的定义返回 400"""
        response = client.post("/api/v1/diagrams", json={"workflow": {"id": "x"}})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "validation_error"

    def test_missing_workflow_field(self, client):
        response = client.post("/api/v1/diagrams", json={})
        assert response.status_code == 422

    def test_upload_yaml(self, client, examples_dir):
        """测试上传 YAML 文件"""
        content = (examples_dir / "jobmonitoring.yml").read_bytes()
        response = client.post(
            "/api/v1/diagrams/upload",
            files={"file": ("jobmonitoring.yml", content, "application/x-yaml")}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert "back-edge" in response.text

    def test_upload_invalid_file_type(self, client):
        response = client.post(
            "/api/v1/diagrams/upload",
            files={"file": ("workflow.txt", b"id: x", "text/plain")}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_file_type"

    def test_upload_unparseable(self, client):
        response = client.post(
            "/api/v1/diagrams/upload",
            files={"file": ("broken.yml", b"id: [unclosed", "application/x-yaml")}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "parse_error"


class TestWorkflowAPI:
    """工作流验证 API 测试类"""

    def test_validate_workflow(self, client, examples_dir):
        """测试工作流摘要"""
        response = client.post(
            "/api/v1/workflows/validate",
            json={"workflow": _load_json(examples_dir, "jobmonitoring")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "jobmonitoring"
        assert data["state_count"] == 7
        assert data["starting_state"] == "SubmitJob"
        assert data["node_count"] == 9
        assert data["back_edge_count"] == 1

    def test_validate_events(self, client, examples_dir):
        response = client.post(
            "/api/v1/workflows/validate",
            json={"workflow": _load_json(examples_dir, "creditcheck")}
        )

        assert response.status_code == 200
        assert response.json()["consumed_events"] == ["CreditCheckCompletedEvent"]
        assert response.json()["produced_events"] == []

    def test_validate_invalid(self, client):
        response = client.post("/api/v1/workflows/validate", json={
            "workflow": {"id": "empty", "name": "Empty", "states": []}
        })

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "configuration_error"


class TestRequestLogging:
    """请求日志中间件测试类"""

    def test_svg_response_marked_and_logged(self, client, examples_dir, caplog):
        """测试 SVG 响应带渲染器版本头并记录图大小"""
        with caplog.at_level("INFO", logger="workflow_diagram.api.middleware"):
            response = client.post(
                "/api/v1/diagrams",
                json={"workflow": _load_json(examples_dir, "helloworld")}
            )

        assert response.status_code == 200
        assert response.headers["X-Diagram-Renderer"] == f"workflow-diagram/{__version__}"
        assert f"[bytes={len(response.content)}]" in caplog.text

    def test_json_response_not_marked(self, client):
        response = client.get("/health")

        assert "X-Diagram-Renderer" not in response.headers
        assert float(response.headers["X-Process-Time"]) >= 0

    def test_request_id_propagated(self, client):
        """测试沿用客户端传入的请求ID"""
        response = client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"


class TestRootAPI:
    """根路径测试类"""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Workflow Diagram API"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
