
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from gradtracker.db.session import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    # stored lower-cased; uniqueness is case-insensitive by construction
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default="user")
    created_at = Column(DateTime, server_default=func.now())

    programs = relationship(
        "Program", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
    documents = relationship(
        "Document", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
