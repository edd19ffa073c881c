from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from starlette.datastructures import UploadFile


@dataclass(frozen=True)
class UploadRule:
    allowed_types: frozenset[str]
    max_bytes: int
    type_error: str
    size_error: str


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def stem(self) -> str:
        return PurePosixPath(self.filename).stem or self.filename

    def check(self, rule: UploadRule) -> str | None:
        """Return the first rule violation, or None when the file is acceptable."""
        if self.content_type not in rule.allowed_types:
            return rule.type_error
        if self.size > rule.max_bytes:
            return rule.size_error
        return None


async def read_upload(upload: UploadFile) -> IncomingFile:
    data = await upload.read()
    return IncomingFile(
        filename=upload.filename or "upload",
        content_type=(upload.content_type or "application/octet-stream").lower(),
        data=data,
    )


def megabytes(value: int) -> int:
    return value // (1024 * 1024)
