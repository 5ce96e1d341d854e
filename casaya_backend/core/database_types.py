"""Portable column types shared by the models."""

import uuid

from sqlalchemy import CHAR, TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its canonical 36-character string.

    MySQL has no native UUID type and SQLite is used by the test suite, so the
    value is persisted as CHAR(36) and surfaced as :class:`uuid.UUID`.
    """

    impl = CHAR(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)
