"""
Client-side key/value storage for session state.
Each key is one slot; the JSON-file backend writes atomically.
"""

import json
import shutil
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

from ..utils.exceptions import StorageError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ClientStorage:
    """Interface for persisted client slots"""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(ClientStorage):
    """In-process storage; state is lost when the process exits"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStorage(ClientStorage):
    """All slots kept in a single JSON document on disk"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._atomic_write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._atomic_write(data)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Client state unreadable, starting empty", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _atomic_write(self, data: Dict[str, Any]) -> None:
        """Write JSON file atomically"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self.path.parent), delete=False, encoding="utf-8"
        ) as tf:
            json.dump(data, tf, indent=2, ensure_ascii=False, default=str)
            temp_path = Path(tf.name)

        try:
            shutil.move(str(temp_path), str(self.path))
        except Exception as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Failed to save client state to {self.path}: {str(e)}")
