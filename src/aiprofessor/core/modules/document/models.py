from pydantic import BaseModel


class DocumentResult(BaseModel):
    """Outcome of a successful processing run."""

    result_pdf_url: str
    history_id: int
