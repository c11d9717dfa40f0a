from pydantic import BaseModel, ConfigDict

class FileRecordBase(BaseModel):
    name: str
    size: int
    type: str
    uploader: str

class FileRecord(FileRecordBase):
    """Metadata persisted for one stored file, keyed by its id."""
    date: str
    timestamp: int
    filename: str

    model_config = ConfigDict(frozen=True)

class FileRecordPublic(FileRecord):
    id: str

class UploadResponse(BaseModel):
    success: bool = True
    message: str
    file: FileRecordPublic

class DeleteResponse(BaseModel):
    success: bool = True
    message: str

