"""Tests for tag parsing and schema normalisation."""
import pytest
from pydantic import ValidationError

from recos_manager.models.schemas import RecommendationCreate
from recos_manager.utils.helpers import format_tags, parse_tags, truncate_text


def test_parse_tags_trims_and_drops_empties():
    assert parse_tags(" seo,  local ,, ,ads ") == ["seo", "local", "ads"]
    assert parse_tags("") == []
    assert parse_tags(None) == []


@pytest.mark.parametrize("tags", [["seo", "local"], ["a"], [], ["réseaux sociaux", "b2b"]])
def test_tags_round_trip(tags):
    assert parse_tags(format_tags(tags)) == tags


def test_recommendation_accepts_tag_string_or_list():
    from_string = RecommendationCreate(title="T", description="D", tags="a, b")
    from_list = RecommendationCreate(title="T", description="D", tags=[" a ", "", "b"])
    assert from_string.tags == from_list.tags == ["a", "b"]


def test_recommendation_defaults():
    reco = RecommendationCreate(title="T", description="D", client_id="")
    assert reco.client_id is None
    assert reco.category.value == "Strategy"
    assert reco.priority.value == "Medium"
    assert reco.status.value == "Draft"


def test_recommendation_rejects_empty_description():
    with pytest.raises(ValidationError):
        RecommendationCreate(title="T", description="")


def test_truncate_text():
    assert truncate_text("abcdef", 4) == "a..."
    assert truncate_text("abc", 4) == "abc"
