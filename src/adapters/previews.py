import logging
import tempfile
import threading
from pathlib import Path
from uuid import uuid4

from src.core.ports.previews import PreviewHandle
from src.core.services.paths import file_extension

logger = logging.getLogger(__name__)


class TempFilePreviewStore:
    """
    PreviewPort backed by files in a scratch directory.

    Each acquired handle owns one file; release removes it. Handles are
    tracked so leaks can be counted and swept on shutdown.
    """

    def __init__(self, base_path: str | Path | None = None):
        if base_path is None:
            base_path = tempfile.mkdtemp(prefix="project-previews-")
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._active: dict[str, Path] = {}
        self._lock = threading.Lock()

    def acquire(self, filename: str, data: bytes) -> PreviewHandle:
        handle_id = uuid4().hex
        ext = file_extension(filename)
        target = self.base_path / (f"{handle_id}.{ext}" if ext else handle_id)
        with open(target, "wb") as f:
            f.write(data)
        with self._lock:
            self._active[handle_id] = target
        return PreviewHandle(handle_id=handle_id, uri=target.as_uri())

    def release(self, handle: PreviewHandle) -> None:
        with self._lock:
            target = self._active.pop(handle.handle_id, None)
        if target is None:
            return
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove preview %s: %s", target, e)

    def active_handles(self) -> list[str]:
        with self._lock:
            return sorted(self._active)

    def release_all(self) -> int:
        """Release every outstanding preview. Returns how many were released."""
        with self._lock:
            handle_ids = list(self._active)
        for handle_id in handle_ids:
            self.release(PreviewHandle(handle_id=handle_id, uri=""))
        return len(handle_ids)
