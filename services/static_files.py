"""Static file serving for the browser front end."""

from pathlib import Path

from fastapi import Response
from fastapi.responses import FileResponse, PlainTextResponse

MIME_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".ico": "image/x-icon",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


class StaticFileServer:
    """Resolve non-proxy paths to files under a root directory."""

    def __init__(self, root: Path | str):
        self._root = Path(root).resolve()

    def resolve(self, path: str) -> Path | None:
        """Map a URL path to a file inside the root, or None."""
        if path == "/":
            path = "/index.html"
        try:
            candidate = (self._root / path.lstrip("/")).resolve()
            if not candidate.is_relative_to(self._root) or not candidate.is_file():
                return None
        except (OSError, ValueError):
            # NUL bytes, over-long names and the like
            return None
        return candidate

    def serve(self, path: str) -> Response:
        """Return the file for ``path`` or a plain-text 404."""
        file_path = self.resolve(path)
        if file_path is None:
            return PlainTextResponse("404 Not Found", status_code=404)
        media_type = MIME_TYPES.get(file_path.suffix.lower(), DEFAULT_MIME_TYPE)
        return FileResponse(file_path, media_type=media_type)
