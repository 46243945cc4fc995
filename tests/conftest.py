from __future__ import annotations

import random
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

import pytest

from b2resilience.classify import ErrorClassifier
from b2resilience.context import Context
from b2resilience.session import Session


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)

        if "property" in path.parts:
            item.add_marker(pytest.mark.property)


class FakeRoot(ErrorClassifier):
    """In-memory raw client; ``failures`` maps an operation to errors raised before it succeeds."""

    def __init__(self, failures: dict[str, list[BaseException]] | None = None) -> None:
        self.failures = {name: list(errors) for name, errors in (failures or {}).items()}
        self.calls: Counter[str] = Counter()
        self.buckets: dict[str, str] = {}
        self.uploads: list[tuple[str, bytes, dict[str, str]]] = []
        self.deleted_files: list[str] = []

    def fail(self, operation: str, *errors: BaseException) -> None:
        self.failures.setdefault(operation, []).extend(errors)

    def step(self, operation: str) -> None:
        self.calls[operation] += 1
        pending = self.failures.get(operation)
        if pending:
            raise pending.pop(0)

    def authorize_account(self, ctx: Context, account: str, key: str) -> None:
        self.step("authorize_account")

    def create_bucket(self, ctx: Context, name: str, bucket_type: str) -> FakeBucket:
        self.step("create_bucket")
        self.buckets[name] = bucket_type
        return FakeBucket(self, name)

    def list_buckets(self, ctx: Context) -> list[FakeBucket]:
        self.step("list_buckets")
        return [FakeBucket(self, name) for name in sorted(self.buckets)]


class FakeBucket:
    def __init__(self, root: FakeRoot, bucket_name: str) -> None:
        self.root = root
        self.bucket_name = bucket_name

    def name(self) -> str:
        return self.bucket_name

    def delete_bucket(self, ctx: Context) -> None:
        self.root.step("delete_bucket")
        self.root.buckets.pop(self.bucket_name, None)

    def get_upload_url(self, ctx: Context) -> FakeUploadURL:
        self.root.step("get_upload_url")
        return FakeUploadURL(self.root, self.bucket_name)


class FakeUploadURL:
    def __init__(self, root: FakeRoot, bucket_name: str) -> None:
        self.root = root
        self.bucket_name = bucket_name

    def upload_file(
        self,
        ctx: Context,
        content: BinaryIO,
        size: int,
        name: str,
        content_type: str,
        content_sha1: str,
        info: dict[str, str],
    ) -> FakeFile:
        content.seek(0)
        self.root.step("upload_file")
        self.root.uploads.append((name, content.read(size), info))
        return FakeFile(self.root, name)


class FakeFile:
    def __init__(self, root: FakeRoot, file_name: str) -> None:
        self.root = root
        self.file_name = file_name

    def delete_file_version(self, ctx: Context) -> None:
        self.root.step("delete_file_version")
        self.root.deleted_files.append(self.file_name)


class WaitRecorder:
    def __init__(self) -> None:
        self.waits: list[float] = []

    def __call__(self, ctx: Context, seconds: float) -> None:
        ctx.raise_if_done()
        self.waits.append(seconds)


@pytest.fixture
def waits() -> WaitRecorder:
    return WaitRecorder()


@pytest.fixture
def make_session(waits: WaitRecorder) -> Callable[..., tuple[Session, FakeRoot]]:
    def factory(
        failures: dict[str, list[BaseException]] | None = None,
        **kwargs: object,
    ) -> tuple[Session, FakeRoot]:
        root = FakeRoot(failures)
        session = Session(root, wait=waits, rng=random.Random(7), **kwargs)
        return session, root

    return factory
