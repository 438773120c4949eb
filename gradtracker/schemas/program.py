
from datetime import date
from pydantic import BaseModel, Field, field_validator

class ProgramBase(BaseModel):
    field_of_study: str | None = Field(default=None, max_length=255)
    focus_area: str | None = None
    portal: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=255)
    deadline: date | None = None
    status: str | None = None
    tuition: str | None = None
    requirements: str | None = None
    notes: str | None = None

class ProgramCreate(ProgramBase):
    university_name: str = Field(max_length=255)

    @field_validator("university_name")
    @classmethod
    def university_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("universityName is required")
        return v.strip()

class ProgramUpdate(ProgramBase):
    university_name: str | None = Field(default=None, max_length=255)

    @field_validator("university_name")
    @classmethod
    def university_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("universityName must not be blank")
        return v.strip() if v is not None else v

class ProgramOut(ProgramBase):
    id: int
    user_id: int
    university_name: str

    class Config:
        from_attributes = True
