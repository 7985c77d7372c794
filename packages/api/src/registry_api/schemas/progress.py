# This project was developed with assistance from AI tools.
"""Progress projection response schema."""

from pydantic import BaseModel


class RequiredDocumentItem(BaseModel):
    """A required (type, party) slot not yet filled."""

    belongs_to: str
    doc_types: list[str]
    label: str


class ProgressResponse(BaseModel):
    application_id: int
    progress_percent: int
    step: int
    step_label: str
    missing_documents: list[RequiredDocumentItem] = []
