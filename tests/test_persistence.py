"""
Tests for the template stores (JSON files and the HTTP service).

The HTTP tests patch urlopen, so no network is needed.
"""
import http.client
import io
import json
import os
import urllib.error
from types import SimpleNamespace

import pytest

from label_designer.core import persistence
from label_designer.core.models import TemplateDocument, make_element
from label_designer.core.persistence import (
    HttpTemplateStore,
    JsonFileStore,
    PersistenceError,
    make_asset_path_portable,
    make_store,
    resolve_asset_path,
)


@pytest.fixture()
def doc():
    return TemplateDocument.create(name="Shelf", width_mm=80, height_mm=50, include_mrp=True)


# ---------------------------------------------------------------------------
# JSON file store
# ---------------------------------------------------------------------------

class TestJsonFileStore:
    def test_save_then_load(self, tmp_path, doc):
        store = JsonFileStore(str(tmp_path))
        template_id = store.save(doc)
        assert (tmp_path / f"{template_id}.json").exists()

        loaded = store.load(template_id)
        assert loaded.id == template_id
        expected = doc.to_dict()
        expected["id"] = template_id
        assert loaded.to_dict() == expected

    def test_save_does_not_mutate_document(self, tmp_path, doc):
        before = doc.to_dict()
        JsonFileStore(str(tmp_path)).save(doc)
        assert doc.id is None
        assert doc.to_dict() == before

    def test_resave_keeps_id(self, tmp_path, doc):
        store = JsonFileStore(str(tmp_path))
        doc.id = "shelf"
        assert store.save(doc) == "shelf"
        doc.name = "Shelf v2"
        assert store.save(doc) == "shelf"
        assert store.load("shelf").name == "Shelf v2"
        assert store.list_ids() == ["shelf"]

    def test_no_temp_files_left(self, tmp_path, doc):
        JsonFileStore(str(tmp_path)).save(doc)
        assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".tmp-")] == []

    def test_missing_template(self, tmp_path):
        with pytest.raises(PersistenceError) as info:
            JsonFileStore(str(tmp_path)).load("nope")
        assert isinstance(info.value.__cause__, OSError)

    def test_corrupt_json(self, tmp_path):
        (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonFileStore(str(tmp_path)).load("bad")

    def test_invalid_document(self, tmp_path):
        (tmp_path / "odd.json").write_text(
            json.dumps({"elements": [{"id": "a", "type": "hologram"}]}), encoding="utf-8"
        )
        with pytest.raises(PersistenceError):
            JsonFileStore(str(tmp_path)).load("odd")

    def test_overflowing_numbers_are_normalized(self, tmp_path):
        # json reads 1e400 as float infinity
        (tmp_path / "t1.json").write_text(
            '{"elements": [{"id": "a", "type": "text", "zIndex": 1e400, "x": 1e400}]}',
            encoding="utf-8",
        )
        loaded = JsonFileStore(str(tmp_path)).load("t1")
        elem = loaded.get("a")
        assert elem.style.z_index == 1
        assert elem.geometry.x == 0.0

    @pytest.mark.parametrize("bad_id", ["../escape", "a/b", "", ".hidden"])
    def test_unsafe_ids_rejected(self, tmp_path, bad_id):
        with pytest.raises(PersistenceError):
            JsonFileStore(str(tmp_path)).load(bad_id)

    def test_image_paths_relative_on_disk(self, tmp_path):
        (tmp_path / "assets").mkdir()
        logo = tmp_path / "assets" / "logo.png"
        doc = TemplateDocument(width_mm=50, height_mm=30)
        doc.add(make_element("image", "logo", width=20, height=20, content=str(logo)))

        store = JsonFileStore(str(tmp_path))
        template_id = store.save(doc)
        raw = json.loads((tmp_path / f"{template_id}.json").read_text(encoding="utf-8"))
        assert raw["elements"][0]["content"] == os.path.join("assets", "logo.png")
        # caller's document still holds the absolute path
        assert doc.get("logo").content == str(logo)

        loaded = store.load(template_id)
        assert loaded.get("logo").content == os.path.normpath(str(logo))


class TestAssetPaths:
    def test_outside_directory_unchanged(self, tmp_path):
        other = os.path.abspath(os.path.join(str(tmp_path), "..", "elsewhere.png"))
        assert make_asset_path_portable(other, str(tmp_path)) == other

    def test_relative_stays_relative(self, tmp_path):
        assert make_asset_path_portable("logo.png", str(tmp_path)) == "logo.png"

    def test_resolve_leaves_urls_and_absolute(self, tmp_path):
        assert resolve_asset_path("C:\\img\\logo.png", str(tmp_path)) == "C:\\img\\logo.png"
        assert resolve_asset_path("", str(tmp_path)) == ""


# ---------------------------------------------------------------------------
# HTTP store
# ---------------------------------------------------------------------------

class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


@pytest.fixture()
def calls(monkeypatch):
    """Record requests and answer from a queue of payloads (bytes or exceptions)."""
    log = SimpleNamespace(requests=[], replies=[])

    def fake_urlopen(req, timeout=None):
        log.requests.append((req.get_method(), req.full_url, req.data, timeout))
        reply = log.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return _FakeResponse(reply)

    monkeypatch.setattr(persistence.urllib.request, "urlopen", fake_urlopen)
    return log


class TestHttpTemplateStore:
    def test_first_save_posts(self, calls, doc):
        calls.replies.append(json.dumps({"id": 42}).encode())
        store = HttpTemplateStore("http://svc.local/", timeout=3)
        assert store.save(doc) == "42"
        method, url, body, timeout = calls.requests[0]
        assert method == "POST"
        assert url == "http://svc.local/api/label-templates"
        assert json.loads(body)["name"] == "Shelf"
        assert timeout == 3
        assert doc.id is None

    def test_resave_puts(self, calls, doc):
        calls.replies.append(b"")
        doc.id = "abc"
        assert HttpTemplateStore("http://svc.local").save(doc) == "abc"
        method, url, _, _ = calls.requests[0]
        assert (method, url) == ("PUT", "http://svc.local/api/label-templates/abc")

    def test_load(self, calls, doc):
        payload = doc.to_dict()
        payload["id"] = "abc"
        calls.replies.append(json.dumps(payload).encode())
        loaded = HttpTemplateStore("http://svc.local").load("abc")
        method, url, _, _ = calls.requests[0]
        assert (method, url) == ("GET", "http://svc.local/api/label-templates/abc")
        assert loaded.to_dict() == payload

    def test_connection_failure(self, calls, doc):
        cause = urllib.error.URLError("connection refused")
        calls.replies.append(cause)
        with pytest.raises(PersistenceError) as info:
            HttpTemplateStore("http://svc.local").save(doc)
        assert info.value.__cause__ is cause

    def test_http_error(self, calls):
        calls.replies.append(urllib.error.HTTPError(
            "http://svc.local/api/label-templates/x", 404, "Not Found", {}, None
        ))
        with pytest.raises(PersistenceError, match="404"):
            HttpTemplateStore("http://svc.local").load("x")

    @pytest.mark.parametrize("base_url", ["localhost", "example.com"])
    def test_url_without_scheme(self, base_url, doc):
        with pytest.raises(PersistenceError) as info:
            HttpTemplateStore(base_url).save(doc)
        assert isinstance(info.value.__cause__, ValueError)

    def test_truncated_reply(self, calls):
        cause = http.client.IncompleteRead(b"{\"id\"")
        calls.replies.append(cause)
        with pytest.raises(PersistenceError) as info:
            HttpTemplateStore("http://svc.local").load("x")
        assert info.value.__cause__ is cause

    def test_bad_json(self, calls):
        calls.replies.append(b"<html>oops</html>")
        with pytest.raises(PersistenceError):
            HttpTemplateStore("http://svc.local").load("x")

    def test_post_without_id(self, calls, doc):
        calls.replies.append(b"{}")
        with pytest.raises(PersistenceError):
            HttpTemplateStore("http://svc.local").save(doc)

    def test_requires_url(self):
        with pytest.raises(ValueError):
            HttpTemplateStore("")


class TestMakeStore:
    def test_file(self, tmp_path):
        store = make_store(SimpleNamespace(store_backend="file", templates_dir=str(tmp_path)))
        assert isinstance(store, JsonFileStore)

    def test_http(self):
        store = make_store(SimpleNamespace(
            store_backend="http", service_url="http://svc.local", request_timeout=4.0,
        ))
        assert isinstance(store, HttpTemplateStore)
        assert store.timeout == 4.0

    def test_unknown(self):
        with pytest.raises(ValueError):
            make_store(SimpleNamespace(store_backend="ftp"))
