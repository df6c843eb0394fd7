"""Per-device key/value storage.

Browsers identify themselves with a device id kept in the signed session
cookie. Anything the dashboard would otherwise stash in the browser's local
storage (today only ``unlockTime``) is kept here instead.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text, UniqueConstraint

from ..db.session import Base


class DeviceStorageEntry(Base):
    __tablename__ = "device_storage"
    __table_args__ = (UniqueConstraint("device_id", "key", name="uq_device_storage_device_key"),)

    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(Text, nullable=False, index=True)
    key = Column(Text, nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)


__all__ = ["DeviceStorageEntry"]
