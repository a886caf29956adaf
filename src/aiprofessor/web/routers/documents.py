from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Query
from pydantic import Field

from aiprofessor.app import App
from aiprofessor.core.modules.history.models import DocumentHistory, ProcessingType
from aiprofessor.core.pagination import PageResult
from aiprofessor.web.deps import AppDep, AuthTokenDep
from aiprofessor.web.openapi import ApiModel, ErrorResponse

router: APIRouter = APIRouter(tags=["documents"])

PROCESSING_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Empty, malformed or non-PDF payload"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    413: {"model": ErrorResponse, "description": "PDF exceeds the maximum allowed size"},
    429: {"model": ErrorResponse, "description": "LLM provider rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "PDF could not be read or the result could not be rendered"},
    502: {"model": ErrorResponse, "description": "LLM provider failed or returned an invalid response"},
    504: {"model": ErrorResponse, "description": "LLM provider timed out"},
}


class DocumentRequest(ApiModel):
    """Request to process an uploaded PDF."""

    pdf_base64: str = Field(..., min_length=1, description="PDF file as base64, optionally as a data URL")
    user_prompt: str | None = Field(None, description="Additional instructions; a default prompt is used when omitted")
    important_parts: list[str] | None = Field(None, description="Topics the result must cover")


class DocumentResponse(ApiModel):
    """Location of the generated PDF."""

    result_pdf_url: str = Field(..., description="Download URL of the generated PDF")


class DocumentHistoryItem(ApiModel):
    id: int
    processing_type: ProcessingType
    user_prompt: str | None
    input_url: str
    output_url: str
    created_at: datetime

    @classmethod
    def from_domain(cls, history: DocumentHistory, app: App) -> "DocumentHistoryItem":
        return cls(
            id=history.id,
            processing_type=history.processing_type,
            user_prompt=history.user_prompt,
            input_url=app.get_artifact_url(history.input_file_path),
            output_url=app.get_artifact_url(history.output_file_path),
            created_at=history.created_at,
        )


class DocumentHistoryPage(ApiModel):
    """One page of processing history, newest first."""

    content: list[DocumentHistoryItem]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    is_last: bool

    @classmethod
    def from_domain(cls, result: PageResult[DocumentHistory], app: App) -> "DocumentHistoryPage":
        return cls(
            content=[DocumentHistoryItem.from_domain(item, app) for item in result.items],
            page_number=result.page,
            page_size=result.size,
            total_elements=result.total,
            total_pages=result.total_pages,
            is_last=result.is_last,
        )


@router.post(
    "/documents/summary",
    summary="Summarize PDF",
    description="Generate a study summary of the uploaded PDF and return the URL of the rendered result PDF.",
    operation_id="createSummary",
    responses={200: {"description": "Summary generated"}, **PROCESSING_ERROR_RESPONSES},
)
async def create_summary(request: DocumentRequest, app: AppDep, auth_token: AuthTokenDep) -> DocumentResponse:
    result = await app.process_document(
        auth_token, ProcessingType.SUMMARY, request.pdf_base64, request.user_prompt, request.important_parts
    )
    return DocumentResponse(result_pdf_url=result.result_pdf_url)


@router.post(
    "/documents/exam-questions",
    summary="Generate exam questions",
    description="Generate exam questions with answers from the uploaded PDF and return the URL of the rendered result PDF.",
    operation_id="createExamQuestions",
    responses={200: {"description": "Exam questions generated"}, **PROCESSING_ERROR_RESPONSES},
)
async def create_exam_questions(request: DocumentRequest, app: AppDep, auth_token: AuthTokenDep) -> DocumentResponse:
    result = await app.process_document(
        auth_token, ProcessingType.EXAM_QUESTIONS, request.pdf_base64, request.user_prompt, request.important_parts
    )
    return DocumentResponse(result_pdf_url=result.result_pdf_url)


@router.get(
    "/documents/history",
    summary="List processing history",
    description="Get the current user's processing history, newest first, optionally filtered by processing type.",
    operation_id="getDocumentHistory",
    responses={
        200: {"description": "History page"},
        400: {"model": ErrorResponse, "description": "Invalid paging parameters"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_document_history(
    app: AppDep,
    auth_token: AuthTokenDep,
    page: Annotated[int, Query(ge=0, description="Zero-based page number")] = 0,
    size: Annotated[int, Query(ge=1, le=100, description="Page size")] = 20,
    processing_type: Annotated[ProcessingType | None, Query(alias="processingType", description="Filter by type")] = None,
) -> DocumentHistoryPage:
    result = await app.get_history(auth_token, processing_type, page, size)
    return DocumentHistoryPage.from_domain(result, app)
