import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from plex_core.config.settings import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("plex_core")
    logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    log_dir = Path(settings.log_dir).expanduser()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "plexctl.log", encoding="utf-8")
    except OSError:
        # 日志目录不可写时仍允许 CLI 正常运行
        logger.addHandler(logging.NullHandler())
    else:
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(JsonFormatter())
        logger.addHandler(fh)
    if settings.debug:
        enable_debug(logger)
    return logger


def enable_debug(target: logging.Logger | None = None) -> None:
    """开启 --debug：调试日志同时输出到 stderr。"""

    target = target or logger
    target.setLevel(logging.DEBUG)
    for handler in target.handlers:
        if getattr(handler, "_plex_debug", False):
            return
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logging.DEBUG)
    sh.setFormatter(logging.Formatter("DEBUG: %(message)s"))
    sh._plex_debug = True  # type: ignore[attr-defined]
    target.addHandler(sh)


logger = setup_logger()
