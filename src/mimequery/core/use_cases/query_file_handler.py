from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from mimequery.core.domain.entities import ErrorPolicy, FileHandlerResult
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.mime_info import query_mime_info
from mimequery.core.use_cases.query_default_app import QueryDefaultAppUseCase


class QueryMimeTypeUseCase:
    def execute(self, path: str) -> str:
        target = Path(path)
        if not target.exists():
            raise MimeQueryError(
                ErrorCode.NOT_FOUND,
                f"File not found: {path}",
                details={"path": path},
            )
        raw = query_mime_info(target)
        mime_type = raw.decode("utf-8", errors="replace").strip()
        if not mime_type:
            raise MimeQueryError(
                ErrorCode.COMMAND_FAILED,
                f"MIME detection returned no output for {path}",
                details={"path": path},
            )
        return mime_type


class QueryFileHandlerUseCase:
    """MIME type of a file, then the default binary for that type."""

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        policy: ErrorPolicy = ErrorPolicy.BEST_EFFORT,
    ):
        self._mime_type = QueryMimeTypeUseCase()
        self._default_app = QueryDefaultAppUseCase(env=env, policy=policy)

    def execute(self, path: str) -> FileHandlerResult:
        mime_type = self._mime_type.execute(path)
        return FileHandlerResult(
            file=path,
            mime_type=mime_type,
            default_app=self._default_app.execute(mime_type),
        )
