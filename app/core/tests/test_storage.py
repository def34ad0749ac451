"""
Tests for the object store adapter in core/storage.py.
"""

from django.core.files.storage import default_storage
from django.urls import resolve
from freezegun import freeze_time

from core.protocols import ObjectStore, UploadTarget
from core.storage import DefaultStorageObjectStore, get_object_store


def upload_token(target):
    return resolve(target.url).kwargs["token"]


class TestDefaultStorageObjectStore:
    def test_upload_target_refs_are_unique(self):
        store = DefaultStorageObjectStore()

        first = store.generate_upload_url()
        second = store.generate_upload_url()

        assert isinstance(first, UploadTarget)
        assert first.ref.startswith("attachments/")
        assert first.ref != second.ref
        assert first.url != second.url

    def test_upload_url_points_at_upload_endpoint(self):
        target = DefaultStorageObjectStore().generate_upload_url()

        assert target.url.startswith("/api/v1/chat/uploads/")
        assert resolve(target.url).url_name == "upload-content"

    def test_reserved_ref_does_not_resolve_before_upload(self):
        store = DefaultStorageObjectStore()
        target = store.generate_upload_url()

        assert store.get_url(target.ref) is None

    def test_unknown_ref_does_not_resolve(self):
        assert DefaultStorageObjectStore().get_url("attachments/never-uploaded") is None

    def test_get_url_empty_ref(self):
        assert DefaultStorageObjectStore().get_url("") is None

    def test_upload_then_resolve(self):
        store = DefaultStorageObjectStore()
        target = store.generate_upload_url()

        result = store.receive_upload(upload_token(target), b"\x89PNG fake image")

        assert result.success
        assert result.data == target.ref
        assert default_storage.exists(target.ref)
        url = store.get_url(target.ref)
        assert url is not None
        assert url.endswith(target.ref)

    def test_upload_link_is_single_use(self):
        store = DefaultStorageObjectStore()
        target = store.generate_upload_url()
        token = upload_token(target)
        store.receive_upload(token, b"first")

        result = store.receive_upload(token, b"second")

        assert not result
        assert result.error_code == "ALREADY_UPLOADED"
        with default_storage.open(target.ref) as f:
            assert f.read() == b"first"

    def test_tampered_token_rejected(self):
        store = DefaultStorageObjectStore()
        target = store.generate_upload_url()

        result = store.receive_upload(upload_token(target) + "x", b"data")

        assert not result
        assert result.error_code == "INVALID_UPLOAD_TOKEN"
        assert not default_storage.exists(target.ref)

    def test_expired_token_rejected(self):
        store = DefaultStorageObjectStore()
        with freeze_time("2026-03-01 12:00:00"):
            target = store.generate_upload_url()

        with freeze_time("2026-03-01 13:30:00"):
            result = store.receive_upload(upload_token(target), b"data")

        assert not result
        assert result.error_code == "INVALID_UPLOAD_TOKEN"

    def test_empty_upload_rejected(self):
        store = DefaultStorageObjectStore()
        target = store.generate_upload_url()

        result = store.receive_upload(upload_token(target), b"")

        assert not result
        assert result.error_code == "EMPTY_UPLOAD"
        assert store.get_url(target.ref) is None


def test_configured_store_satisfies_protocol():
    store = get_object_store()

    assert isinstance(store, ObjectStore)
    assert get_object_store() is store
