"""File storage operations for uploaded and generated PDFs."""

from pathlib import Path
from uuid import uuid4

INPUT_DIR = "input"
OUTPUT_DIR = "output"
FILES_URL_PREFIX = "datas"


def write_input_pdf(files_path: str, user_id: int, content: bytes) -> str:
    """Write an uploaded PDF to disk.

    Args:
        files_path: Base path for artifact storage
        user_id: Owner of the file, used in the file name
        content: PDF bytes

    Returns:
        Storage key relative to files_path, e.g. input/7_<uuid>.pdf
    """
    return _write(files_path, f"{INPUT_DIR}/{user_id}_{uuid4()}.pdf", content)


def write_output_pdf(files_path: str, user_id: int, processing_type: str, content: bytes) -> str:
    """Write a generated PDF to disk.

    Returns:
        Storage key relative to files_path, e.g. output/7_<uuid>_summary.pdf
    """
    return _write(files_path, f"{OUTPUT_DIR}/{user_id}_{uuid4()}_{processing_type.lower()}.pdf", content)


def get_artifact_file_path(files_path: str, key: str) -> Path:
    """Get absolute path to a stored artifact."""
    return Path(files_path) / key.lstrip("/")


def artifact_url(base_url: str, key: str) -> str:
    """Public download URL for a stored artifact, served under /datas."""
    return f"{base_url.rstrip('/')}/{FILES_URL_PREFIX}/{key.lstrip('/')}"


def _write(files_path: str, key: str, content: bytes) -> str:
    file_path = get_artifact_file_path(files_path, key)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)
    return key
