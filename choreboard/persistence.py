import json
import logging
import os
import tempfile
from pathlib import Path

from .errors import SnapshotError

logger = logging.getLogger(__name__)

TASK_ASSIGNMENTS = "task_assignments"
USERS = "users"
APP_CONTENT = "app_content"
SNAPSHOT_NAMES = (TASK_ASSIGNMENTS, USERS, APP_CONTENT)


class JsonSnapshot:
    """Mirror each store map to its own JSON document in ``directory``.

    Every document is an object keyed by the map's natural key (date, user id
    or content key). Writes replace the whole document.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        if name not in SNAPSHOT_NAMES:
            raise ValueError(f"unknown snapshot {name!r}")
        return self.directory / f"{name}.json"

    def load(self, name: str) -> dict:
        path = self.path_for(name)
        if not path.exists():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SnapshotError(f"could not read {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise SnapshotError(f"{path} does not contain a JSON object")
        return payload

    def save(self, name: str, payload: dict) -> None:
        path = self.path_for(name)
        try:
            text = json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise SnapshotError(f"could not write {path}: {exc}") from exc
        logger.debug("Wrote %d %s records to %s", len(payload), name, path)
