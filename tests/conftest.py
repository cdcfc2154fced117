"""
Shared test fixtures and helpers for the formgate test suite.
"""

from pathlib import Path

import pytest

from formgate.testing import build_multipart, make_request


URLENCODED = "application/x-www-form-urlencoded"
JSON = "application/json"


class FakeResponse:
    """Minimal response sink: anything with a mutable ``headers`` mapping."""

    def __init__(self):
        self.headers = {}


@pytest.fixture
def response():
    return FakeResponse()


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


def json_request(body, **kw):
    if isinstance(body, str):
        body = body.encode("utf-8")
    return make_request(body, JSON, **kw)


def form_request(body, **kw):
    if isinstance(body, str):
        body = body.encode("utf-8")
    return make_request(body, URLENCODED, **kw)


def multipart_request(fields=(), files=(), **kw):
    body, content_type = build_multipart(fields, files)
    return make_request(body, content_type, **kw)
