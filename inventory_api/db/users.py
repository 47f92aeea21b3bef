from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column("firstname", String(100), nullable=False)
    last_name = Column("lastname", String(100), nullable=False)
    username = Column(String(100), nullable=False, unique=True, index=True)
    # salted one-way hash, never the raw password
    password = Column(String(255), nullable=False)


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), nullable=False, unique=True)
    expiration = Column(DateTime, nullable=False)
