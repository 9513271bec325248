"""
Plain-text export, meant to be pasted into a design tool such as Canva.
"""
from __future__ import annotations

from typing import List, Optional

from recos_manager.models.schemas import RecommendationResponse
from recos_manager.services.chapters import Chapter


def build_text(reco: RecommendationResponse, client_name: str,
               chapters: Optional[List[Chapter]] = None) -> bytes:
    """
    Render the recommendation as UTF-8 text.

    The description is exported as written; *chapters* is accepted for a
    uniform exporter signature and is not used.
    """
    lines = [
        reco.title,
        "",
        f"Client: {client_name}",
        f"Catégorie: {reco.category}",
        f"Priorité: {reco.priority}",
    ]
    if reco.context:
        lines += ["", "Contexte:", reco.context]
    lines += ["", "Recommandation:", reco.description]
    if reco.tags:
        lines += ["", "Tags: " + ", ".join(reco.tags)]

    return ("\n".join(lines) + "\n").encode("utf-8")
