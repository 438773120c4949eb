
from pydantic import BaseModel, Field

class DocumentUpdate(BaseModel):
    file_name: str | None = Field(default=None, max_length=255)
    # path of a file already saved under the owner's upload directory
    file_path: str | None = Field(default=None, max_length=500)
    doc_type: str | None = Field(default=None, max_length=100)
    notes: str | None = None

class DocumentOut(BaseModel):
    id: int
    user_id: int
    file_name: str
    file_path: str
    doc_type: str | None = None
    notes: str | None = None

    class Config:
        from_attributes = True
