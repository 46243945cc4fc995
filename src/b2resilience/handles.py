"""Resilient bucket, upload-target and file handles."""

from __future__ import annotations

import logging as py_logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO

from b2resilience.context import Context
from b2resilience.raw import RawBucket, RawFile, RawUploadURL
from b2resilience.retry import call_resilient

if TYPE_CHECKING:
    from b2resilience.session import Session

logger = py_logging.getLogger(__name__)


@dataclass(frozen=True)
class Bucket:
    raw: RawBucket
    session: Session

    def name(self) -> str:
        return self.raw.name()

    def delete_bucket(self, ctx: Context) -> None:
        call_resilient(ctx, self.session, lambda: self.raw.delete_bucket(ctx))
        logger.debug("Deleted bucket")

    def get_upload_url(self, ctx: Context) -> UploadTarget:
        return call_resilient(
            ctx,
            self.session,
            lambda: UploadTarget(self.raw.get_upload_url(ctx), self.session),
        )


@dataclass(frozen=True)
class UploadTarget:
    """Upload URL handle; reusable until the backing URL expires."""

    raw: RawUploadURL
    session: Session

    def upload_file(
        self,
        ctx: Context,
        content: BinaryIO,
        size: int,
        name: str,
        content_type: str,
        content_sha1: str,
        info: dict[str, str] | None = None,
    ) -> File:
        metadata = dict(info or {})

        def op() -> File:
            raw_file = self.raw.upload_file(ctx, content, size, name, content_type, content_sha1, metadata)
            return File(raw_file, self, self.session)

        uploaded = call_resilient(ctx, self.session, op)
        logger.debug("Uploaded file name=%s size=%s", name, size)
        return uploaded


@dataclass(frozen=True)
class File:
    raw: RawFile
    upload_target: UploadTarget
    session: Session

    def delete_file_version(self, ctx: Context) -> None:
        call_resilient(ctx, self.session, lambda: self.raw.delete_file_version(ctx))
