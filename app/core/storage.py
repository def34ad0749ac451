"""
Object store adapters.

The adapter class is configured with the OBJECT_STORE_BACKEND setting
(dotted path). The default delegates to Django's ``default_storage``, so
switching STORAGES["default"] to an S3-compatible backend moves attachments
without touching the messaging code.

Upload flow with the default adapter:
    1. POST /api/v1/chat/uploads/ reserves a ref and returns an upload URL
    2. The client PUTs the raw bytes to that URL (our server, not the bucket)
    3. The client sends the ref as attachment_ref with the message; refs
       that were never uploaded do not resolve
"""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache

from django.conf import settings
from django.core import signing
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.urls import reverse
from django.utils.module_loading import import_string

from core.protocols import ObjectStore, UploadTarget
from core.services import ServiceResult

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_STORE_BACKEND = "core.storage.DefaultStorageObjectStore"

UPLOAD_TOKEN_SALT = "orbit.attachments.upload"
UPLOAD_TOKEN_MAX_AGE = 60 * 60  # 1 hour


class DefaultStorageObjectStore:
    """
    Object store backed by Django's configured default storage.

    Upload URLs point at our own PUT endpoint and carry a signed,
    time-limited token naming the reserved ref. Each ref can be written
    once.
    """

    prefix = "attachments"
    upload_url_name = "chat:upload-content"

    def generate_upload_url(self) -> UploadTarget:
        ref = f"{self.prefix}/{uuid.uuid4().hex}"
        token = signing.dumps(ref, salt=UPLOAD_TOKEN_SALT)
        url = reverse(self.upload_url_name, kwargs={"token": token})
        return UploadTarget(ref=ref, url=url)

    def get_url(self, ref: str) -> str | None:
        if not ref:
            return None
        try:
            if not default_storage.exists(ref):
                return None
            return default_storage.url(ref)
        except (ValueError, NotImplementedError, SuspiciousFileOperation) as exc:
            # Storage backends raise these for refs they cannot address
            logger.warning(f"Could not resolve storage ref {ref!r}: {exc}")
            return None

    def receive_upload(self, token: str, content: bytes) -> ServiceResult[str]:
        """
        Store the bytes of an upload issued by generate_upload_url.

        Returns:
            ServiceResult with the stored ref

        Error codes:
            INVALID_UPLOAD_TOKEN: Token is forged, malformed or expired
            EMPTY_UPLOAD: No bytes in the request body
            ALREADY_UPLOADED: The ref already holds an object
        """
        try:
            ref = signing.loads(token, salt=UPLOAD_TOKEN_SALT, max_age=UPLOAD_TOKEN_MAX_AGE)
        except signing.BadSignature:
            return ServiceResult.failure(
                "Upload link is invalid or has expired",
                error_code="INVALID_UPLOAD_TOKEN",
            )

        if not content:
            return ServiceResult.failure(
                "No file data provided",
                error_code="EMPTY_UPLOAD",
            )

        if default_storage.exists(ref):
            return ServiceResult.failure(
                "This upload link has already been used",
                error_code="ALREADY_UPLOADED",
            )

        saved = default_storage.save(ref, ContentFile(content))
        if saved != ref:
            # Lost a race with another upload to the same ref
            default_storage.delete(saved)
            return ServiceResult.failure(
                "This upload link has already been used",
                error_code="ALREADY_UPLOADED",
            )

        logger.info(f"Stored attachment {ref} ({len(content)} bytes)")
        return ServiceResult.success(ref)


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """Return the configured object store adapter (cached per process)."""
    backend = getattr(settings, "OBJECT_STORE_BACKEND", DEFAULT_OBJECT_STORE_BACKEND)
    return import_string(backend)()
