import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional
from routine_assistant.config.settings import settings


class JsonFormatter(logging.Formatter):
    """每条记录输出一行 JSON：ts / level / name / msg，再合并 extra={"extra": {...}} 中的字段。"""

    def __init__(self, redact: bool = False):
        super().__init__()
        self.redact = redact

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self.redact:
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


def setup_logger(
    name: str = "routine_assistant",
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    # 网关与控制台共用同一进程时避免重复挂载 handler
    if logger.handlers:
        return logger
    directory = Path(log_dir or settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(directory / (log_file or settings.log_file), encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(redact=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
