"""
默认配置

环境变量配置:
- TERMREPLAY_RECORD_FILE: 会话日志路径 (默认: session_record.jsonl)
- TERMREPLAY_SHELL: 录制时启动的 shell (默认: bash)
- TERMREPLAY_SPEED: 默认回放速度 (默认: 1.0)
- TERMREPLAY_START_DELAY: 回放开始前的等待秒数 (默认: 2.0)
"""

import logging
import os

logger = logging.getLogger(__name__)


def env_float(name: str, default: float) -> float:
    """读取浮点型环境变量，无法解析时使用默认值"""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"忽略无效的 {name}={raw!r}，使用默认值 {default}")
        return default


DEFAULT_RECORD_FILE = os.environ.get("TERMREPLAY_RECORD_FILE", "session_record.jsonl")
DEFAULT_SHELL = os.environ.get("TERMREPLAY_SHELL", "bash")
DEFAULT_SPEED = env_float("TERMREPLAY_SPEED", 1.0)
DEFAULT_START_DELAY = env_float("TERMREPLAY_START_DELAY", 2.0)

# PTY 尺寸（行, 列）
DEFAULT_ROWS = 24
DEFAULT_COLS = 80

# 单次读取的最大字节数
INPUT_CHUNK_SIZE = 1024
OUTPUT_CHUNK_SIZE = 4096
