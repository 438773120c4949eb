
import enum
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from gradtracker.db.session import Base


class ApplicationStatus(str, enum.Enum):
    ACCEPTED = "Accepted"
    APPLIED = "Applied"
    IN_PROGRESS = "In Progress"
    REJECTED = "Rejected"
    OTHER = "Other"

    @classmethod
    def parse(cls, value) -> "ApplicationStatus":
        """Match a member name or display name, case-insensitively; anything else is OTHER."""
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return cls.OTHER
        normalized = str(value).strip().lower()
        for status in cls:
            if status.name.lower() == normalized or status.value.lower() == normalized:
                return status
        return cls.OTHER


class Program(Base):
    __tablename__ = "programs"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    university_name = Column(String(255), nullable=False)
    field_of_study = Column(String(255))
    focus_area = Column(Text)
    portal = Column(String(255))
    website = Column(String(255))
    deadline = Column(Date)
    status = Column(String(50), default=ApplicationStatus.OTHER.value)
    tuition = Column(Text)
    requirements = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    owner = relationship("User", back_populates="programs")
    links = relationship(
        "ProgramDocument", back_populates="program", cascade="all, delete-orphan", passive_deletes=True
    )
