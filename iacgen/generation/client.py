from __future__ import annotations
import logging
import httpx
from pydantic import ValidationError
from iacgen.core.errors import GenerationError
from iacgen.generation.prompt import build_prompt
from iacgen.generation.types import (
    GeneratedFileSet,
    GenerationServiceRequest,
    GenerationServiceResponse,
)

log = logging.getLogger(__name__)


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[len("```json"):]
    elif content.startswith("```"):
        content = content[len("```"):]
    if content.endswith("```"):
        content = content[:-len("```")]
    return content.strip()


def parse_file_set(code: str) -> GeneratedFileSet:
    """Parse the ``code`` payload of a generation response into a file set."""
    try:
        return GeneratedFileSet.model_validate_json(strip_code_fence(code))
    except ValidationError as e:
        raise GenerationError(
            f"Failed to parse file map from AI response `code` field: {e}. Content was: {code}"
        ) from e


class GenerationClient:
    """Client for the external code-generation service.

    The service receives the prompt as free text and answers with a JSON
    envelope whose ``code`` field is itself JSON text, often wrapped in a
    markdown fence.
    """

    def __init__(self, http: httpx.AsyncClient, service_url: str):
        self.http = http
        self.service_url = service_url

    def build_prompt(self, oam_yaml: str, provider: str, tool: str) -> str:
        return build_prompt(oam_yaml, provider, tool)

    async def generate(self, prompt: str) -> GeneratedFileSet:
        body = GenerationServiceRequest(requirements=prompt)
        try:
            r = await self.http.post(self.service_url, json=body.model_dump())
        except httpx.HTTPError as e:
            raise GenerationError(str(e)) from e

        if not r.is_success:
            try:
                error_body = r.text
            except UnicodeDecodeError:
                error_body = "<failed to read error body>"
            raise GenerationError(f"Local AI service request failed: {error_body}")

        try:
            envelope = GenerationServiceResponse.model_validate_json(r.content)
        except ValidationError as e:
            raise GenerationError(f"Failed to decode AI service response: {e}") from e

        files = parse_file_set(envelope.code)
        log.info("Generation service returned %d files", len(files))
        return files
