import os
import re
import secrets
import string
import time
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from fastapi import Request, UploadFile

from logging_config import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024
ID_ALPHABET = string.digits + string.ascii_lowercase
ID_RANDOM_LENGTH = 9
EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,16}$")

class UploadTooLargeError(Exception):
    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"Upload exceeds the limit of {max_bytes} bytes")

def _extension(original_name: Optional[str]) -> str:
    if not original_name:
        return ""
    suffix = Path(original_name).suffix
    # Only short alphanumeric extensions make it into the stored name.
    return suffix if EXTENSION_PATTERN.match(suffix) else ""

def generate_file_id(original_name: Optional[str] = None) -> str:
    millis = int(time.time() * 1000)
    random_part = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_RANDOM_LENGTH))
    return f"{millis}-{random_part}{_extension(original_name)}"

class FileRepository:
    """Raw uploaded bytes, one file per generated id under a single directory."""

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)

    def ensure_directory(self) -> None:
        if not self.base_path.exists():
            logger.info(f"Creating file storage directory at {self.base_path}")
            self.base_path.mkdir(parents=True, exist_ok=True)
        else:
            logger.info(f"File storage directory already exists at {self.base_path}")

    def path(self, file_id: str) -> Path:
        if not file_id or file_id in (".", "..") or "/" in file_id or "\\" in file_id:
            raise ValueError(f"Invalid file id: {file_id!r}")
        candidate = self.base_path / file_id
        if candidate.resolve().parent != self.base_path.resolve():
            raise ValueError(f"File id {file_id!r} escapes the storage directory")
        return candidate

    def exists(self, file_id: str) -> bool:
        try:
            return self.path(file_id).is_file()
        except ValueError:
            return False

    async def save(self, upload: UploadFile, original_name: Optional[str], max_bytes: int) -> Tuple[str, int]:
        file_id = generate_file_id(original_name)
        local_file_path = self.path(file_id)
        size = 0

        logger.info(f"Saving upload '{original_name}' to {local_file_path}")
        try:
            async with aiofiles.open(local_file_path, 'wb') as out_file:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > max_bytes:
                        raise UploadTooLargeError(max_bytes)
                    await out_file.write(chunk)
        except BaseException:
            local_file_path.unlink(missing_ok=True)
            raise
        finally:
            await upload.close()

        logger.debug(f"Wrote {size} bytes to {local_file_path}")
        return file_id, size

    def stat(self, file_id: str) -> os.stat_result:
        return os.stat(self.path(file_id))

    def delete(self, file_id: str) -> bool:
        file_path = self.path(file_id)
        try:
            file_path.unlink()
        except FileNotFoundError:
            logger.warning(f"File {file_id} already absent from {self.base_path}, nothing to remove")
            return False
        logger.info(f"Removed {file_path}")
        return True

def get_file_repository(request: Request) -> FileRepository:
    return request.app.state.file_repository
