"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code shared by the domain apps
(authentication, social, chat). It holds no domain logic.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - SoftDeleteMixin: Soft delete support (is_deleted, deleted_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

ViewSet Mixins (import from core.viewset_mixins):
    - ServiceResponseMixin: Failed ServiceResult -> HTTP response

Protocols (import from core.protocols):
    - ObjectStore: Attachment blob storage interface
    - UploadTarget: Reserved storage reference plus upload URL

Storage (import from core.storage):
    - get_object_store: Configured ObjectStore adapter

Note:
    Django models, model mixins and viewset mixins are NOT imported here to
    avoid AppRegistryNotReady errors. Import them directly from their modules.
"""

from .protocols import ObjectStore, UploadTarget
from .services import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
    "ObjectStore",
    "UploadTarget",
]
