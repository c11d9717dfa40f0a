import io
import re

import pytest
from fastapi import UploadFile

from file_repository import FileRepository, UploadTooLargeError, generate_file_id

ID_PATTERN = re.compile(r"^\d{13}-[0-9a-z]{9}(\.[A-Za-z0-9]+)?$")

def test_generate_file_id_format():
    file_id = generate_file_id("photo.JPG")

    assert ID_PATTERN.match(file_id)
    assert file_id.endswith(".JPG")

@pytest.mark.parametrize("original_name", [None, "", "README", ".bashrc", "weird.ex/t", "evil.a b", "x." + "a" * 17])
def test_generate_file_id_drops_unusable_extensions(original_name):
    file_id = generate_file_id(original_name)

    assert re.match(r"^\d{13}-[0-9a-z]{9}$", file_id)

def test_generate_file_id_is_unique():
    ids = [generate_file_id("a.txt") for _ in range(10000)]

    assert len(set(ids)) == len(ids)

def test_ensure_directory_is_idempotent(tmp_path):
    repository = FileRepository(tmp_path / "nested" / "uploads")

    repository.ensure_directory()
    repository.ensure_directory()

    assert repository.base_path.is_dir()

@pytest.mark.parametrize("file_id", ["", ".", "..", "../etc/passwd", "a/b", "..\\x"])
def test_path_rejects_ids_outside_directory(tmp_path, file_id):
    repository = FileRepository(tmp_path)

    with pytest.raises(ValueError):
        repository.path(file_id)
    assert repository.exists(file_id) is False

def test_path_joins_directory_and_id(tmp_path):
    repository = FileRepository(tmp_path)

    assert repository.path("1-abc.txt") == tmp_path / "1-abc.txt"

@pytest.mark.asyncio
async def test_save_writes_bytes_under_generated_id(tmp_path):
    repository = FileRepository(tmp_path)
    upload = UploadFile(file=io.BytesIO(b"hello"), filename="../../a.txt")

    file_id, size = await repository.save(upload, "../../a.txt", max_bytes=1024)

    assert size == 5
    assert ID_PATTERN.match(file_id)
    assert repository.exists(file_id)
    assert (tmp_path / file_id).read_bytes() == b"hello"
    assert [p.name for p in tmp_path.iterdir()] == [file_id]

@pytest.mark.asyncio
async def test_save_rejects_oversized_upload_and_cleans_up(tmp_path):
    repository = FileRepository(tmp_path)
    upload = UploadFile(file=io.BytesIO(b"x" * 32), filename="big.bin")

    with pytest.raises(UploadTooLargeError) as exc_info:
        await repository.save(upload, "big.bin", max_bytes=16)

    assert exc_info.value.max_bytes == 16
    assert list(tmp_path.iterdir()) == []

def test_delete_existing_and_missing_file(tmp_path):
    repository = FileRepository(tmp_path)
    (tmp_path / "1-abc.txt").write_bytes(b"data")

    assert repository.delete("1-abc.txt") is True
    assert not repository.exists("1-abc.txt")
    assert repository.delete("1-abc.txt") is False

def test_stat_reports_size_and_missing_file(tmp_path):
    repository = FileRepository(tmp_path)
    (tmp_path / "1-abc.txt").write_bytes(b"data")

    assert repository.stat("1-abc.txt").st_size == 4
    with pytest.raises(FileNotFoundError):
        repository.stat("2-def.txt")
