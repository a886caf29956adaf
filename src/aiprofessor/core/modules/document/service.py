import asyncio
from typing import Any

import httpx
import structlog
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis

from aiprofessor.config import Config
from aiprofessor.core.core import Service
from aiprofessor.core.modules.artifact.converter import ArtifactConverter
from aiprofessor.core.modules.artifact.storage import (
    artifact_url,
    get_artifact_file_path,
    write_input_pdf,
    write_output_pdf,
)
from aiprofessor.core.modules.document.models import DocumentResult
from aiprofessor.core.modules.history.models import ProcessingType
from aiprofessor.core.modules.llm.client import CompletionClient
from aiprofessor.core.modules.llm.prompts import build_user_prompt, get_system_prompt

logger = structlog.get_logger(__name__)


class DocumentService(Service):
    """Runs the document pipeline: validate, ask the LLM, render, store, record history.

    Each step raises its own classified error and stops the pipeline; nothing is
    written to disk or to history unless every earlier step succeeded, and the
    stored files are removed again if the history row cannot be written.
    """

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]], redis: Redis) -> None:
        super().__init__(config, database, redis)
        self.converter = ArtifactConverter(config.pdf_max_size_bytes, config.pdf_font_path)
        self.completion_client = CompletionClient(
            model=config.llm_model,
            api_key=config.llm_api_key,
            api_base=config.llm_api_base,
            max_tokens=config.llm_max_tokens,
            timeout=httpx.Timeout(
                connect=config.llm_connect_timeout,
                read=config.llm_read_timeout,
                write=config.llm_write_timeout,
                pool=config.llm_connect_timeout,
            ),
        )

    async def process(
        self,
        user_id: int,
        pdf_base64: str,
        user_prompt: str | None,
        processing_type: ProcessingType,
        important_parts: list[str] | None = None,
    ) -> DocumentResult:
        """Turn an uploaded PDF into a summary or exam-question PDF and record it in history."""
        pdf_bytes = self.converter.decode_and_validate(pdf_base64)
        logger.info("document_processing_started", user_id=user_id, processing_type=processing_type, pdf_bytes=len(pdf_bytes))

        system_prompt = get_system_prompt(processing_type)
        prompt = build_user_prompt(user_prompt, important_parts)
        document: bytes | str = pdf_bytes
        if not self.config.llm_send_pdf:
            document = await asyncio.to_thread(self.converter.extract_text, pdf_bytes)
            logger.debug("pdf_text_extracted", user_id=user_id, chars=len(document))

        markdown = await self.completion_client.complete(system_prompt, prompt, document)
        result_pdf = await asyncio.to_thread(self.converter.render_markdown_to_pdf, markdown)

        input_file_path = await asyncio.to_thread(write_input_pdf, self.config.files_path, user_id, pdf_bytes)
        output_file_path = await asyncio.to_thread(
            write_output_pdf, self.config.files_path, user_id, processing_type, result_pdf
        )
        try:
            history = await self.core.services.history.record(
                user_id=user_id,
                processing_type=processing_type,
                user_prompt=user_prompt,
                input_file_path=input_file_path,
                output_file_path=output_file_path,
            )
        except Exception:
            logger.warning("document_history_record_failed", user_id=user_id, processing_type=processing_type)
            for key in (input_file_path, output_file_path):
                get_artifact_file_path(self.config.files_path, key).unlink(missing_ok=True)
            raise

        logger.info(
            "document_processing_finished",
            user_id=user_id,
            processing_type=processing_type,
            history_id=history.id,
            result_pdf_bytes=len(result_pdf),
        )
        return DocumentResult(result_pdf_url=artifact_url(self.config.base_url, output_file_path), history_id=history.id)
