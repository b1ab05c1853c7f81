"""Section drafting: model text persisted under the outline path."""

from guidesmith.schemas import SectionWriteRequest
from guidesmith.services.llm import LlmService
from guidesmith.services.storage import StorageService


class WritingService:
    def __init__(self, llm: LlmService, storage: StorageService):
        self.llm = llm
        self.storage = storage

    async def write_section(self, request: SectionWriteRequest) -> str:
        """Draft the section and return where it was written."""
        content = await self.llm.write_section(request)
        return await self.storage.write_section([*request.outline_path, request.section_id], content)
