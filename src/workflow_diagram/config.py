"""
配置管理
"""
import os
from dataclasses import dataclass
from typing import Optional


ENV_PREFIX = "WORKFLOW_DIAGRAM_"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {ENV_PREFIX + name} must be an integer, got '{value}'")


@dataclass
class DiagramConfig:
    """图渲染配置（间距、尺寸、字体）"""
    rank_spacing: int = 100
    track_spacing: int = 200
    node_width: int = 150
    node_height: int = 48
    margin: int = 40
    font_family: str = "Helvetica, Arial, sans-serif"
    font_size: int = 12
    label_max_length: int = 32
    show_legend: bool = False

    def __post_init__(self):
        if self.node_width >= self.track_spacing:
            raise ValueError("node_width must be smaller than track_spacing")
        if self.node_height >= self.rank_spacing:
            raise ValueError("node_height must be smaller than rank_spacing")
        if self.label_max_length < 4:
            raise ValueError("label_max_length must be at least 4")

    @classmethod
    def from_env(cls) -> "DiagramConfig":
        """从环境变量加载配置（调用方负责 load_dotenv）"""
        defaults = cls()
        return cls(
            rank_spacing=_env_int("RANK_SPACING", defaults.rank_spacing),
            track_spacing=_env_int("TRACK_SPACING", defaults.track_spacing),
            node_width=_env_int("NODE_WIDTH", defaults.node_width),
            node_height=_env_int("NODE_HEIGHT", defaults.node_height),
            margin=_env_int("MARGIN", defaults.margin),
            font_family=os.getenv(ENV_PREFIX + "FONT_FAMILY", defaults.font_family),
            font_size=_env_int("FONT_SIZE", defaults.font_size),
            label_max_length=_env_int("LABEL_MAX_LENGTH", defaults.label_max_length),
            show_legend=os.getenv(ENV_PREFIX + "SHOW_LEGEND", "false").lower() == "true"
        )


def get_log_level(default: str = "INFO") -> str:
    """日志级别"""
    return os.getenv("LOG_LEVEL", default).upper()


def get_server_settings() -> dict:
    """API 服务配置"""
    return {
        "host": os.getenv("API_HOST", "0.0.0.0"),
        "port": int(os.getenv("API_PORT", "8000")),
        "reload": os.getenv("API_RELOAD", "false").lower() == "true",
        "workers": int(os.getenv("API_WORKERS", "1"))
    }
