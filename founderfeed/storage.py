import json
from pathlib import Path
from typing import Any, Optional

from .database import Setting, get_session, init_database
from .logger import StructuredLogger, get_logger


class SettingsStore:
    """Durable key-value store; values are JSON-serialized."""

    def __init__(self, db_path: Path, logger: Optional[StructuredLogger] = None):
        self.db_path = Path(db_path)
        self.logger = logger or get_logger()
        init_database(self.db_path)

    def get(self, key: str, default: Any = None) -> Any:
        session = get_session(self.db_path)
        try:
            row = session.get(Setting, key)
            if row is None:
                return default
            try:
                return json.loads(row.value)
            except json.JSONDecodeError:
                self.logger.warning("Ignoring corrupt setting", key=key)
                return default
        finally:
            session.close()

    def set(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False, sort_keys=True)
        session = get_session(self.db_path)
        try:
            row = session.get(Setting, key)
            if row is None:
                session.add(Setting(key=key, value=payload))
            else:
                row.value = payload
            session.commit()
        finally:
            session.close()

    def delete(self, key: str) -> bool:
        session = get_session(self.db_path)
        try:
            row = session.get(Setting, key)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        finally:
            session.close()
