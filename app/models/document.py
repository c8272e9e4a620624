"""
Mapping between ORM rows and the flat documents the rest of the app works with
"""

from typing import Any, Dict


class DocumentMixin:
    """Rows are exposed as camelCase dicts; NULL columns are left out entirely.

    Subclasses declare ``DOC_FIELDS`` mapping document keys to column attributes.
    """

    DOC_FIELDS: Dict[str, str] = {}

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {}
        for key, attr in self.DOC_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                doc[key] = value
        return doc

    def apply(self, data: Dict[str, Any]) -> None:
        for key, value in data.items():
            attr = self.DOC_FIELDS.get(key)
            if attr is None:
                raise KeyError(f"Unknown field '{key}' for {self.__tablename__}")
            setattr(self, attr, value)

    @classmethod
    def column_for(cls, key: str):
        return getattr(cls, cls.DOC_FIELDS[key])
