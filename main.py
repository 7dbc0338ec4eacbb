"""
Workflow Diagram API 主入口
"""
import logging
import uvicorn
from dotenv import load_dotenv

# 加载环境变量
load_dotenv()

from workflow_diagram.config import get_log_level, get_server_settings

# 配置日志
logging.basicConfig(
    level=get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

from workflow_diagram.api import app


if __name__ == "__main__":
    settings = get_server_settings()

    if settings["reload"]:
        # 开发模式
        uvicorn.run(
            "workflow_diagram.api:app",
            host=settings["host"],
            port=settings["port"],
            reload=True,
            log_level="info"
        )
    else:
        # 生产模式
        uvicorn.run(
            app,
            host=settings["host"],
            port=settings["port"],
            workers=settings["workers"],
            log_level="info"
        )
