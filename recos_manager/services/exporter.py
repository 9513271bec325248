"""
Export dispatcher: resolves the client name, segments the description and
hands both to the renderer for the requested format.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from recos_manager.models.schemas import ExportFormat, RecommendationResponse
from recos_manager.services.ai_assistant import AIAssistantService
from recos_manager.services.chapters import Chapter, segment_description
from recos_manager.services.export_layered import build_ora
from recos_manager.services.export_pdf import build_pdf
from recos_manager.services.export_pptx import build_pptx
from recos_manager.services.export_text import build_text
from recos_manager.services.layout import UNSPECIFIED_CLIENT
from recos_manager.services.store import RecommendationStore
from recos_manager.utils.helpers import safe_filename

logger = logging.getLogger(__name__)

# reported when the format renders the description whole
SOURCE_UNUSED = "none"

Builder = Callable[[RecommendationResponse, str, List[Chapter]], bytes]

# format -> (builder, media type, filename suffix, renders chapters)
EXPORTERS: Dict[ExportFormat, Tuple[Builder, str, str, bool]] = {
    ExportFormat.PPTX: (
        build_pptx,
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        ".pptx",
        True,
    ),
    ExportFormat.PDF: (build_pdf, "application/pdf", ".pdf", True),
    ExportFormat.TXT: (build_text, "text/plain; charset=utf-8", "_canva.txt", False),
    ExportFormat.ORA: (build_ora, "image/openraster", ".ora", True),
}


@dataclass
class ExportedFile:
    content: bytes
    media_type: str
    filename: str
    chapter_source: str


async def resolve_client_name(store: RecommendationStore, client_id: Optional[str]) -> str:
    if not client_id:
        return UNSPECIFIED_CLIENT
    client = await store.get_client(client_id)
    return (client or {}).get("name") or UNSPECIFIED_CLIENT


async def export_recommendation(
    reco: RecommendationResponse,
    export_format: ExportFormat,
    store: RecommendationStore,
    ai_service: Optional[AIAssistantService] = None,
) -> ExportedFile:
    """
    Render *reco* in *export_format*.

    Chapters are recomputed on every call; pass ``ai_service=None`` to skip
    the AI segmentation attempt.  Formats that print the description whole
    are never segmented and report SOURCE_UNUSED.
    """
    builder, media_type, suffix, uses_chapters = EXPORTERS[export_format]
    client_name = await resolve_client_name(store, reco.client_id)
    if uses_chapters:
        source, chapters = await segment_description(reco.description, ai_service)
    else:
        source, chapters = SOURCE_UNUSED, []

    logger.info(
        "Exporting recommendation %s as %s (%d chapters, source=%s)",
        reco.id, export_format.value, len(chapters), source,
    )
    content = builder(reco, client_name, chapters)
    return ExportedFile(
        content=content,
        media_type=media_type,
        filename=safe_filename(reco.title, suffix),
        chapter_source=source,
    )
