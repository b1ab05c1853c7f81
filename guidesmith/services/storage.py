"""File-system persistence for research artifacts, outlines, sessions and sections."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from guidesmith.config import OutputPaths
from guidesmith.exceptions import StorageError
from guidesmith.schemas import OutlineNode, ResearchDocumentMetadata, SessionState
from guidesmith.utils.filesystem import ensure_dir, write_json, write_markdown

logger = logging.getLogger(__name__)


class StorageService:
    """Writes workflow output below the configured output directories.

    Every method is a coroutine; the blocking file work runs in a worker
    thread. Nothing here is transactional, a failure can leave partial files.
    """

    def __init__(self, paths: OutputPaths):
        self.paths = paths

    async def ensure_directories(self) -> None:
        for dir_path in (
            self.paths.research_raw_dir,
            self.paths.outlines_dir,
            self.paths.documents_dir,
        ):
            await self._run(ensure_dir, dir_path)

    async def persist_research_artifact(
        self,
        metadata: ResearchDocumentMetadata,
        raw_content: str,
        extract: Optional[str] = None,
    ) -> ResearchDocumentMetadata:
        """Store page content and metadata; returns metadata with its storage path set."""
        artifact_dir = self.paths.research_raw_dir / metadata.id
        stored = metadata.with_storage_path(str(artifact_dir))

        await self._run(write_markdown, artifact_dir, "source.md", raw_content)
        if extract:
            await self._run(write_markdown, artifact_dir, "extract.md", extract)
        await self._run(write_json, artifact_dir, "metadata.json", stored.to_json_dict())

        logger.info(
            "Persisted research artifact",
            extra={"artifact_id": metadata.id, "storage_path": stored.storage_path},
        )
        return stored

    async def persist_outline(self, session_id: str, outline: List[OutlineNode]) -> Path:
        payload = [node.to_json_dict() for node in outline]
        return await self._run(write_json, self.paths.outlines_dir, f"{session_id}.json", payload)

    async def persist_session(self, session: SessionState) -> Path:
        return await self._run(
            write_json,
            self.paths.documents_dir / "sessions",
            f"{session.id}.json",
            session.to_json_dict(),
        )

    async def write_section(self, path_segments: List[str], content: str) -> str:
        """Write a section as ``<documents>/<segments...>/<last>.md`` and return its path."""
        if not path_segments or not all(path_segments):
            raise StorageError("Invalid section path")
        *parents, filename = path_segments
        target_dir = self.paths.documents_dir.joinpath(*parents)
        # Segments come from clients; the file must stay under the documents dir.
        resolved = (target_dir / f"{filename}.md").resolve()
        if not resolved.is_relative_to(self.paths.documents_dir.resolve()):
            raise StorageError(f"Invalid section path: {'/'.join(path_segments)}")
        target = await self._run(write_markdown, target_dir, f"{filename}.md", content)
        return str(target)

    async def read_section(self, location: str) -> str:
        return await self._run(Path(location).read_text, encoding="utf-8")

    async def write_combined_document(self, name: str, content: str) -> str:
        target = await self._run(write_markdown, self.paths.documents_dir, f"{name}.md", content)
        return str(target)

    async def _run(self, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except OSError as e:
            logger.error(f"Storage operation {func.__name__} failed: {e}")
            raise StorageError(str(e)) from e
