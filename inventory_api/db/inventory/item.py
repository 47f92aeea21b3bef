import uuid

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from ..database import Base

ITEM_NAME_MAX_LENGTH = 100
ITEM_DESCRIPTION_MAX_LENGTH = 255


class Item(Base):
    __tablename__ = "items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # unique: catalog get-or-create inserts with ON CONFLICT (name)
    name = Column(String(ITEM_NAME_MAX_LENGTH), nullable=False, unique=True, index=True)
    description = Column(String(ITEM_DESCRIPTION_MAX_LENGTH), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
