"""
Shared route dependencies
"""

from app.services import store
from app.services.column_inference import ColumnInferenceService
from app.services.import_service import InferColumns, InferGroups


def get_store() -> store.DocumentStore:
    return store.get_store()


def get_column_inference() -> InferColumns:
    return ColumnInferenceService().infer


def get_group_inference() -> InferGroups:
    return ColumnInferenceService().group_guests
