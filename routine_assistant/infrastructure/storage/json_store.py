import os
import re
from pathlib import Path
from typing import Optional
from uuid import uuid4

from routine_assistant.config.settings import settings
from routine_assistant.domain.conversation import ConversationStore
from routine_assistant.domain.exceptions import PersistenceFailure


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class JsonConversationStore(ConversationStore):
    """每个键一个 JSON 文件：<root>/conversations/<key>.json。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._conv_root = self._root / "conversations"
        try:
            self._conv_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceFailure(code="STORE_INIT_ERROR", message=str(e))

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceFailure(code="STORE_READ_ERROR", message=str(e))

    def save(self, key: str, raw: str) -> None:
        path = self._path(key)
        tmp_path = path.with_name(f"{path.stem}.{uuid4().hex}.json.tmp")
        try:
            tmp_path.write_text(raw, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceFailure(code="STORE_WRITE_ERROR", message=str(e))

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceFailure(code="STORE_DELETE_ERROR", message=str(e))

    def _path(self, key: str) -> Path:
        safe = _UNSAFE_KEY_CHARS.sub("_", key) or "_"
        return self._conv_root / f"{safe}.json"


class MemoryConversationStore(ConversationStore):
    """进程内存储，供控制台演示与测试使用。"""

    def __init__(self):
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def save(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
