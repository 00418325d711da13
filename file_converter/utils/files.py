import logging
import os
import tempfile
import uuid

logger = logging.getLogger(__name__)


def ensure_dir(path: str) -> str:
    os.makedirs(path, exist_ok=True)
    return path


def create_request_dir(base_dir: str) -> str:
    """Create a private directory for one conversion inside `base_dir`"""
    ensure_dir(base_dir)
    return tempfile.mkdtemp(prefix="job-", dir=base_dir)


def create_temp_input_file(file_bytes: bytes, extension: str, directory: str) -> str:
    """Write the upload under a collision-free name and return its path"""
    suffix = f".{extension}" if extension else ""
    file_path = os.path.join(directory, f"{uuid.uuid4()}-input{suffix}")
    with open(file_path, "wb") as f:
        f.write(file_bytes)
    return file_path


def cleanup_temp_file(file_path: str | None) -> None:
    """Best-effort removal, the file may already be gone"""
    if not file_path:
        return
    try:
        os.unlink(file_path)
        logger.debug("Cleaned up temp file: %s", file_path)
    except FileNotFoundError:
        logger.debug("Temp file already removed: %s", file_path)
    except OSError as e:
        logger.warning("Could not delete temp file %s: %s", file_path, e)


def cleanup_temp_dir(dir_path: str | None) -> None:
    """Remove a request directory and anything left inside it"""
    if not dir_path or not os.path.isdir(dir_path):
        return
    for name in os.listdir(dir_path):
        cleanup_temp_file(os.path.join(dir_path, name))
    try:
        os.rmdir(dir_path)
    except OSError as e:
        logger.warning("Could not delete temp dir %s: %s", dir_path, e)


def is_dir_writable(dir_path: str) -> bool:
    try:
        ensure_dir(dir_path)
        with tempfile.NamedTemporaryFile(dir=dir_path, prefix="probe-"):
            pass
        return True
    except OSError:
        return False
