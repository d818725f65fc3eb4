"""Identifier helpers and the portable UUID column type"""
from typing import Any
import uuid

from sqlalchemy import TypeDecorator, String


def generate_uuid() -> str:
    return str(uuid.uuid4())


def is_valid_uuid(value: Any) -> bool:
    """Check that a path/token value looks like one of our record ids"""
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class GUID(TypeDecorator):
    """Stores UUIDs as VARCHAR(36) on every backend and hands back plain strings"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else str(value)
