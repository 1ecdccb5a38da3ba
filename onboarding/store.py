import contextlib
import json
import os
import re
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError as SchemaError

from .errors import CorruptError, NotFoundError
from .payloads import SessionRecord, record_to_dict

log = structlog.get_logger(__name__)

UUID_REGEX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


class SessionStore:
    """
    File-per-session store: each record lives at <directory>/<local_id>.json.

    Records for different ids never share a file. Two writers racing on the
    same id are not synchronized; the last rename wins.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def path_for(self, local_id: str) -> Path:
        return self.directory / f"{local_id}.json"

    def write(self, local_id: str, record: SessionRecord) -> None:
        """Persist a record. Failures are logged, never raised."""
        content = json.dumps(record_to_dict(record), indent=2)
        tmp_path = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.path_for(local_id))
        except OSError as e:
            log.error("session_write_failed", local_id=local_id, error=str(e))
            if tmp_path:
                with contextlib.suppress(OSError):
                    os.remove(tmp_path)

    def read(self, local_id: str) -> SessionRecord:
        if not local_id or not UUID_REGEX.fullmatch(local_id):
            raise NotFoundError("Invalid localId")

        path = self.path_for(local_id)
        if not path.is_file():
            raise NotFoundError("Invalid localId")
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError("Invalid localId")
        except (OSError, UnicodeDecodeError) as e:
            log.error("session_read_failed", local_id=local_id, error=str(e))
            raise CorruptError("Session data corrupted") from e

        try:
            return SessionRecord.model_validate_json(raw)
        except SchemaError as e:
            raise CorruptError("Session data corrupted") from e
