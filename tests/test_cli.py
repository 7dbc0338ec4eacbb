"""
CLI 测试
"""
import pytest
from click.testing import CliRunner

from workflow_diagram.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """CLI 测试类"""

    def test_render_to_file(self, runner, examples_dir, tmp_path):
        """测试渲染到文件"""
        output = tmp_path / "jobmonitoring.svg"
        result = runner.invoke(cli, ["render", str(examples_dir / "jobmonitoring.json"), "-o", str(output)])

        assert result.exit_code == 0
        svg = output.read_text(encoding="utf-8")
        assert svg.startswith("<?xml")
        assert 'data-node-id="DetermineCompletion"' in svg

    def test_render_to_stdout(self, runner, examples_dir):
        result = runner.invoke(cli, ["render", str(examples_dir / "helloworld.yml"), "--legend"])

        assert result.exit_code == 0
        assert "<svg" in result.stdout
        assert 'class="legend"' in result.stdout

    def test_render_invalid(self, runner, tmp_path):
        """测试无效工作流返回非零退出码"""
        path = tmp_path / "dangling.json"
        path.write_text(
            '{"id": "d", "name": "D", "states": [{"name": "A", "type": "inject", "transition": "Nowhere"}]}',
            encoding="utf-8"
        )
        result = runner.invoke(cli, ["render", str(path)])

        assert result.exit_code == 1
        assert "<svg" not in result.stdout

    def test_validate(self, runner, examples_dir):
        """测试验证并输出摘要"""
        result = runner.invoke(cli, ["validate", str(examples_dir / "creditcheck.yml")])

        assert result.exit_code == 0
        assert "Customer Credit Check Workflow" in result.stdout
        assert "Starting state: CheckCredit" in result.stdout
        assert "Consumed events: 1" in result.stdout

    def test_validate_invalid(self, runner, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("id: e\nname: E\nstates: []\n", encoding="utf-8")
        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1

    def test_missing_file(self, runner):
        result = runner.invoke(cli, ["render", "does-not-exist.json"])
        assert result.exit_code == 2
