"""Contracts the wrapped storage client has to satisfy."""

from __future__ import annotations

from typing import BinaryIO, Protocol

from b2resilience.context import Context


class RawFile(Protocol):
    def delete_file_version(self, ctx: Context) -> None: ...


class RawUploadURL(Protocol):
    def upload_file(
        self,
        ctx: Context,
        content: BinaryIO,
        size: int,
        name: str,
        content_type: str,
        content_sha1: str,
        info: dict[str, str],
    ) -> RawFile: ...


class RawBucket(Protocol):
    def name(self) -> str: ...

    def delete_bucket(self, ctx: Context) -> None: ...

    def get_upload_url(self, ctx: Context) -> RawUploadURL: ...


class ErrorHooks(Protocol):
    def transient(self, exc: BaseException) -> bool: ...

    def reauth(self, exc: BaseException) -> bool: ...

    def backoff(self, exc: BaseException) -> float | None: ...


class RawRoot(ErrorHooks, Protocol):
    def authorize_account(self, ctx: Context, account: str, key: str) -> None: ...

    def create_bucket(self, ctx: Context, name: str, bucket_type: str) -> RawBucket: ...

    def list_buckets(self, ctx: Context) -> list[RawBucket]: ...
