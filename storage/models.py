from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime
import json

Base = declarative_base()


class VolumeRecord(Base):
    """Registry entry for a provisioned loopback volume"""
    __tablename__ = "volumes"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False, index=True)
    image_path = Column(String, nullable=False)
    mount_path = Column(String, nullable=False)
    size = Column(String, nullable=False)
    labels_json = Column(Text, nullable=False, default="{}")
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def labels(self) -> dict:
        try:
            return json.loads(self.labels_json or "{}")
        except ValueError:
            return {}

    @labels.setter
    def labels(self, value: dict | None) -> None:
        self.labels_json = json.dumps(value or {}, sort_keys=True)
