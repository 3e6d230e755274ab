"""Shared fixtures for the TinyCDN client tests."""

import base64
import hashlib
import json
import re
import zlib

import pytest

from pytinycdn.api import TinyCdnClient
from pytinycdn.transport import Transport

_OPERATION_RE = re.compile(r"(cdn\w+)\s*(?:\((.*?)\))?\s*(?:\{|\})", re.S)
_ARG_RE = re.compile(r'(\w+): ("(?:[^"\\]|\\.)*"|true|false|null|-?\d+(?:\.\d+)?)')


def parse_call(query):
    """Return (operation, arguments) of the first call in a query."""
    match = _OPERATION_RE.search(query)
    assert match, f"no operation in query: {query}"
    args = {
        key: json.loads(value) for key, value in _ARG_RE.findall(match.group(2) or "")
    }
    return match.group(1), args


class FakeTransport(Transport):
    """Transport that hands each request to a handler instead of the network."""

    name = "fake"

    def __init__(self, handler):
        super().__init__()
        self.handler = handler
        self.requests = []

    def _post(self, url, body, headers):
        payload = json.loads(body)
        self.requests.append({"url": url, "headers": headers, "payload": payload})
        result = self.handler(payload["query"])
        if isinstance(result, bytes):
            return result
        return json.dumps(result).encode("utf-8")

    @property
    def operations(self):
        return [parse_call(r["payload"]["query"])[0] for r in self.requests]

    def calls(self, operation):
        """Arguments of every request for ``operation``."""
        found = []
        for request in self.requests:
            name, args = parse_call(request["payload"]["query"])
            if name == operation:
                found.append(args)
        return found


class FakeCdn:
    """In-memory stand-in for the CDN service."""

    def __init__(self):
        self.files = {}
        self.content = {}
        self.next_id = 100

    def _record(self, file_id):
        return dict(self.files[file_id])

    def __call__(self, query):
        operation, args = parse_call(query)
        handler = getattr(self, f"_{operation}")
        return {"data": {operation: handler(args)}}

    def _cdnAddFile(self, args):
        for file_id, record in self.files.items():
            if record["md5"] == args["md5"] and record["is_uploaded"]:
                return self._record(file_id)

        file_id = self.next_id
        self.next_id += 1
        self.files[file_id] = {
            "cdn_file_id": file_id,
            "filename": args["filename"],
            "size": args["size"],
            "md5": args["md5"],
            "sha256": args.get("sha256"),
            "type": args["file_type"],
            "is_public": args["is_public"],
            "is_uploaded": False,
            "views": 0,
            "create_token": f"token-{file_id}",
            "access_token": f"access-{file_id}",
        }
        self.content[file_id] = b""
        return self._record(file_id)

    def _cdnUploadFile(self, args):
        record = self.files[args["file_id"]]
        assert args["create_token"] == record["create_token"]
        chunk = base64.b64decode(args["content_base64"])
        if args.get("gzcompress"):
            chunk = zlib.decompress(chunk)
        self.content[args["file_id"]] += chunk
        data = self.content[args["file_id"]]
        if len(data) >= record["size"]:
            record["is_uploaded"] = hashlib.md5(data).hexdigest() == record["md5"]
        return {
            "cdn_file_id": record["cdn_file_id"],
            "create_token": record["create_token"],
            "access_token": record["access_token"],
        }

    def _cdnFile(self, args):
        if "file_id" in args:
            file_id = args["file_id"]
            return [self._record(file_id)] if file_id in self.files else []
        return [self._record(file_id) for file_id in self.files]

    def _cdnDeleteFile(self, args):
        record = self.files.get(args["file_id"])
        if record is None or record["create_token"] != args["create_token"]:
            return False
        del self.files[args["file_id"]]
        return True


@pytest.fixture
def fake_cdn():
    return FakeCdn()


@pytest.fixture
def cdn_transport(fake_cdn):
    return FakeTransport(fake_cdn)


@pytest.fixture
def cdn_client(cdn_transport):
    return TinyCdnClient(
        api_token="test_token",
        api_url="https://cdn.example.test/api/",
        transport=cdn_transport,
    )


@pytest.fixture
def make_file(tmp_path):
    """Create a local file of ``size`` bytes with non-trivial content."""

    def _make(name="data.bin", size=1024, content=None):
        path = tmp_path / name
        if content is None:
            content = bytes((i * 31 + i // 7) % 256 for i in range(size))
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def make_transport():
    """Return the FakeTransport class for handler-driven tests."""
    return FakeTransport


@pytest.fixture
def scripted_client():
    """Build a client whose responses are looked up by operation name.

    Values in ``responses`` are returned as the operation result. Callables
    receive the parsed call arguments.
    """

    def _make(responses):
        def handler(query):
            operation, args = parse_call(query)
            value = responses[operation]
            if callable(value):
                value = value(args)
            return {"data": {operation: value}}

        transport = FakeTransport(handler)
        client = TinyCdnClient(
            api_token="tok", api_url="https://x.test/api/", transport=transport
        )
        return client, transport

    return _make
