"""Tests for the export renderers and GET /api/recommendations/{id}/export/{format}."""
import io
import xml.etree.ElementTree as ET
import zipfile

import fitz  # PyMuPDF
import pytest
from httpx import AsyncClient
from pptx import Presentation

from recos_manager.models.schemas import RecommendationResponse
from recos_manager.services import layout
from recos_manager.services.chapters import Chapter
from recos_manager.services.export_layered import build_ora
from recos_manager.services.export_pdf import build_pdf
from recos_manager.services.export_pptx import build_pptx
from recos_manager.services.export_text import build_text
from recos_manager.utils.helpers import safe_filename
from tests.conftest import AUTH_HEADERS, create_recommendation

LONG_TEXT = " ".join(["Lorem ipsum dolor sit amet, consectetur adipiscing elit."] * 80)

RECO = RecommendationResponse(
    id="r1",
    title="Plan SEO 2024",
    category="SEO",
    description="unused",
    context="Site e-commerce",
    priority="High",
    status="Draft",
    tags=["seo", "local"],
)

CHAPTERS = [
    Chapter("Audit", "Point de départ.\n- Vitesse\n- Balises\n  title et meta"),
    Chapter("Plan", "Premier paragraphe.\nSecond paragraphe."),
    Chapter("Annexe", LONG_TEXT),
]


# ---------------------------------------------------------------------------
# Layout rules
# ---------------------------------------------------------------------------

def test_classify_bullets_with_lead_and_continuation():
    content = layout.classify_content("Intro\n- un\n  suite\n• deux\n* trois")
    assert content.lead == "Intro"
    assert content.bullets == ["un suite", "deux", "trois"]
    assert content.is_bulleted


def test_classify_paragraphs_without_bullets():
    content = layout.classify_content("Ligne A\n\nLigne B")
    assert content.paragraphs == ["Ligne A", "Ligne B"]
    assert not content.is_bulleted


def test_category_colours_and_fallback():
    assert layout.category_color("Social Media") == "EC4899"
    assert layout.category_color("Radio") == "64748B"
    assert layout.priority_color("High") == "EF4444"


def test_safe_filename_replaces_non_alphanumerics():
    assert safe_filename("Plan SEO: 2024/25 é", ".pdf") == "Plan_SEO__2024_25__.pdf"


# ---------------------------------------------------------------------------
# Renderers
# ---------------------------------------------------------------------------

def test_pptx_has_title_slide_plus_one_per_chapter():
    prs = Presentation(io.BytesIO(build_pptx(RECO, "Client A", CHAPTERS)))
    assert len(prs.slides) == 1 + len(CHAPTERS)
    title_texts = [s.text_frame.text for s in prs.slides[0].shapes if s.has_text_frame]
    assert "Plan SEO 2024" in title_texts
    assert "Tags: seo • local" in title_texts
    counters = [s.text_frame.text for s in prs.slides[3].shapes if s.has_text_frame]
    assert "3 / 3" in counters


def test_pdf_has_cover_plus_one_page_per_chapter():
    doc = fitz.open(stream=build_pdf(RECO, "Client A", CHAPTERS), filetype="pdf")
    try:
        assert doc.page_count == 1 + len(CHAPTERS)
        assert "Plan SEO 2024" in doc[0].get_text()
        assert "Audit" in doc[1].get_text()
        assert "1 / 3" in doc[1].get_text()
        assert doc.metadata["title"] == "Plan SEO 2024"
    finally:
        doc.close()


def test_text_export_lines():
    text = build_text(RECO.model_copy(update={"description": "Faire X."}), "Client A").decode()
    assert text.splitlines() == [
        "Plan SEO 2024",
        "",
        "Client: Client A",
        "Catégorie: SEO",
        "Priorité: High",
        "",
        "Contexte:",
        "Site e-commerce",
        "",
        "Recommandation:",
        "Faire X.",
        "",
        "Tags: seo, local",
    ]


def test_text_export_omits_empty_context_and_tags():
    reco = RECO.model_copy(update={"context": "", "tags": [], "description": "D"})
    text = build_text(reco, "Client A").decode()
    assert "Contexte:" not in text
    assert "Tags:" not in text


def test_ora_container_layout():
    data = build_ora(RECO, "Client A", CHAPTERS)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        names = archive.namelist()
        assert names[0] == "mimetype"
        assert archive.getinfo("mimetype").compress_type == zipfile.ZIP_STORED
        assert archive.read("mimetype") == b"image/openraster"
        assert "mergedimage.png" in names
        assert "Thumbnails/thumbnail.png" in names

        root = ET.fromstring(archive.read("stack.xml"))
        assert root.get("w") == "1080" and root.get("h") == "1350"
        layers = root.find("stack").findall("layer")
        assert [l.get("name") for l in layers] == [
            "Tags", "Chapitre 3", "Chapitre 2", "Chapitre 1",
            "Context", "Badges", "Header", "Background",
        ]
        visibility = {l.get("name"): l.get("visibility") for l in layers}
        assert visibility["Chapitre 1"] == "visible"
        assert visibility["Chapitre 2"] == "hidden"
        for layer in layers:
            assert archive.read(layer.get("src"))[:8] == b"\x89PNG\r\n\x1a\n"


def test_ora_without_context_or_tags():
    reco = RECO.model_copy(update={"context": "", "tags": []})
    with zipfile.ZipFile(io.BytesIO(build_ora(reco, "Client A", []))) as archive:
        root = ET.fromstring(archive.read("stack.xml"))
        names = [l.get("name") for l in root.find("stack").findall("layer")]
    assert names == ["Badges", "Header", "Background"]


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fmt, magic, filename, source",
    [
        ("pptx", b"PK", "Optimiser_le_SEO_local.pptx", "numbered"),
        ("pdf", b"%PDF", "Optimiser_le_SEO_local.pdf", "numbered"),
        ("txt", b"Optimiser", "Optimiser_le_SEO_local_canva.txt", "none"),
        ("ora", b"PK", "Optimiser_le_SEO_local.ora", "numbered"),
    ],
)
async def test_export_endpoint_formats(client: AsyncClient, fmt, magic, filename, source):
    created = await create_recommendation(client)
    resp = await client.get(
        f"/api/recommendations/{created['id']}/export/{fmt}", headers=AUTH_HEADERS
    )
    assert resp.status_code == 200
    assert resp.content.startswith(magic)
    assert resp.headers["content-disposition"] == f'attachment; filename="{filename}"'
    assert resp.headers["x-chapter-source"] == source


@pytest.mark.asyncio
async def test_export_uses_unspecified_client_label(client: AsyncClient):
    created = await create_recommendation(client)
    resp = await client.get(
        f"/api/recommendations/{created['id']}/export/txt", headers=AUTH_HEADERS
    )
    assert "Client: Client non spécifié" in resp.text


@pytest.mark.asyncio
async def test_export_uses_client_name(client: AsyncClient):
    created = await create_recommendation(client, new_client={"name": "Fleuriste Rose"})
    resp = await client.get(
        f"/api/recommendations/{created['id']}/export/txt", headers=AUTH_HEADERS
    )
    assert "Client: Fleuriste Rose" in resp.text


@pytest.mark.asyncio
async def test_export_prefers_ai_chapters_unless_disabled(client: AsyncClient, ai_service):
    ai_service.configured = True
    ai_service.chapters = [Chapter("Vue IA", "Contenu IA")]
    created = await create_recommendation(client)
    url = f"/api/recommendations/{created['id']}/export/pdf"

    resp = await client.get(url, headers=AUTH_HEADERS)
    assert resp.headers["x-chapter-source"] == "ai"
    doc = fitz.open(stream=resp.content, filetype="pdf")
    assert doc.page_count == 2
    doc.close()

    resp = await client.get(url, params={"use_ai": "false"}, headers=AUTH_HEADERS)
    assert resp.headers["x-chapter-source"] == "numbered"


@pytest.mark.asyncio
async def test_text_export_skips_chapter_segmentation(client: AsyncClient, ai_service):
    ai_service.configured = True
    ai_service.chapters = [Chapter("Vue IA", "Contenu IA")]
    created = await create_recommendation(client)

    resp = await client.get(
        f"/api/recommendations/{created['id']}/export/txt", headers=AUTH_HEADERS
    )
    assert resp.status_code == 200
    assert resp.headers["x-chapter-source"] == "none"
    assert ai_service.segment_calls == 0
    assert "Corriger les NAP" in resp.text


@pytest.mark.asyncio
async def test_export_unknown_format_returns_400(client: AsyncClient):
    created = await create_recommendation(client)
    resp = await client.get(
        f"/api/recommendations/{created['id']}/export/docx", headers=AUTH_HEADERS
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_export_missing_recommendation_returns_404(client: AsyncClient):
    resp = await client.get("/api/recommendations/nope/export/pdf", headers=AUTH_HEADERS)
    assert resp.status_code == 404
