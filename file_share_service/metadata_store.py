import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import Request
from pydantic import ValidationError

import schemas
from logging_config import get_logger

logger = get_logger(__name__)

class MetadataStore:
    """
    In-memory mapping of file id to FileRecord, mirrored to one JSON document.

    The document is rewritten in full after every mutation. Writes go through a
    temporary file and an atomic rename so the document on disk is always a
    complete snapshot.
    """

    def __init__(self, metadata_path: Path):
        self.metadata_path = Path(metadata_path)
        self._records: Dict[str, schemas.FileRecord] = {}
        self._lock = threading.Lock()

    def load(self) -> None:
        self._records = {}
        if not self.metadata_path.exists():
            logger.info(f"No metadata document at {self.metadata_path}, starting with an empty store.")
            return

        try:
            raw = json.loads(self.metadata_path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
            records = {
                file_id: schemas.FileRecord.model_validate(data)
                for file_id, data in raw.items()
            }
        except (OSError, ValueError, ValidationError):
            logger.exception(f"Failed to load metadata from {self.metadata_path}, starting with an empty store.")
            return

        self._records = records
        logger.info(f"Loaded {len(records)} file record(s) from {self.metadata_path}")

    def list(self) -> List[schemas.FileRecordPublic]:
        return [
            schemas.FileRecordPublic(id=file_id, **record.model_dump())
            for file_id, record in list(self._records.items())
        ]

    def get(self, file_id: str) -> Optional[schemas.FileRecord]:
        return self._records.get(file_id)

    def put(self, file_id: str, record: schemas.FileRecord) -> None:
        with self._lock:
            self._records[file_id] = record
            self._save()

    def remove(self, file_id: str) -> bool:
        with self._lock:
            if self._records.pop(file_id, None) is None:
                return False
            self._save()
            return True

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def _save(self) -> None:
        document = json.dumps(
            {file_id: record.model_dump() for file_id, record in self._records.items()},
            indent=2,
            ensure_ascii=False,
        )
        directory = self.metadata_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.metadata_path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(document)
            os.replace(tmp_name, self.metadata_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Persisted {len(self._records)} file record(s) to {self.metadata_path}")

def get_metadata_store(request: Request) -> MetadataStore:
    return request.app.state.metadata_store
