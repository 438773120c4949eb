
from pydantic import BaseModel

class DashboardStats(BaseModel):
    total_programs: int
    total_documents: int
    status_counts: dict[str, int]
