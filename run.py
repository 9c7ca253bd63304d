"""认知迷宫服务启动脚本

Runs the FastAPI server: session/event tracking, server-side play and
cognitive analysis.
"""

import logging
import sys
from pathlib import Path

import uvicorn
import yaml
from dotenv import load_dotenv

from cognimaze.ai.provider_local import LocalProvider
from cognimaze.ai.provider_remote import create_remote_provider
from cognimaze.core.state import Settings
from cognimaze.server.api import create_app
from cognimaze.server.controller import build_controller

# 预加载环境变量（PORT、分析服务地址等）
load_dotenv()


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """加载配置文件"""
    if not config_path.exists():
        print("Warning: config.yaml not found, using default config")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        print(f"Warning: Failed to load config ({exc}), using default config")
        return {}


def create_ai_provider(settings: Settings):
    """根据设置创建分析 Provider"""
    provider_type = settings.ai_provider.lower()

    if provider_type == "local":
        print("Using Local Provider (Rules)")
        return LocalProvider()

    if provider_type in ("remote", "auto"):
        print("Trying to use Remote Provider...")
        provider = create_remote_provider(settings.analysis_url, timeout=settings.analysis_timeout)
        if provider._client:
            print(f"[OK] Remote Provider reachable at {provider.base_url}")
            return provider
        if provider_type == "remote":
            print("[!] Remote Provider unreachable, analysis will fall back to local rules")
            return provider

    print("[->] Using Local Provider (Rules)")
    return LocalProvider()


def main():
    """脚本入口，启动 Web 服务"""
    print("=" * 60)
    print("Cognitive Maze - Web API")
    print("=" * 60)
    print()

    # 加载配置
    print("Loading configuration...")
    config = load_config()
    settings = Settings()
    if config:
        settings.load_from_dict(config)
    settings.load_from_env()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("[OK] Configuration loaded")
    print(f"     Maze size: {settings.maze_width}x{settings.maze_height}")
    print()

    # 构建分析 Provider
    print("Initializing analysis...")
    ai_provider = create_ai_provider(settings)
    print(f"[OK] Analysis Provider: {ai_provider.name}")
    print()

    controller = build_controller(settings=settings, ai_provider=ai_provider)

    static_dir = Path(settings.static_root)
    if not static_dir.exists():
        print(f"[!] Static directory not found: {static_dir} (API only)")

    app = create_app(controller, static_dir=static_dir if static_dir.exists() else None)

    url = f"http://{settings.server_host}:{settings.server_port}"
    print("=" * 60)
    print(f"Server running at: {url}")
    print(f"API health: {url}/api/health")
    print(f"API docs: {url}/docs")
    print("=" * 60)
    print()

    config = uvicorn.Config(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=str(settings.log_level).lower(),
    )
    server = uvicorn.Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        print("\nServer interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
