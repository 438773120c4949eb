
from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from gradtracker.db.session import Base

class ProgramDocument(Base):
    __tablename__ = "program_documents"
    __table_args__ = (
        UniqueConstraint("program_id", "document_id", name="uq_program_document"),
    )
    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    usage_notes = Column(Text)

    program = relationship("Program", back_populates="links")
    document = relationship("Document", back_populates="links")
