
from pydantic import BaseModel

class LinkCreate(BaseModel):
    document_id: int
    usage_notes: str | None = None

class LinkUpdate(BaseModel):
    usage_notes: str | None = None

class LinkOut(BaseModel):
    id: int
    program_id: int
    document_id: int
    usage_notes: str | None = None

    class Config:
        from_attributes = True
