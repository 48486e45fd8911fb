"""Unit tests for skill compatibility scoring."""
import pytest
from pydantic import ValidationError

from skillswap.config import Settings
from skillswap.domain.entities import SkillDirection, SkillLevel, SkillListing
from skillswap.domain.errors import InvalidInput
from skillswap.services.matching.compatibility import CategoryAffinity, score


def _skill(title, category, direction=SkillDirection.OFFERED, id="s1"):
    return SkillListing(
        id=id,
        owner_id="u1",
        title=title,
        category=category,
        level=SkillLevel.INTERMEDIATE,
        direction=direction,
    )


def test_exact_title_is_full_score():
    result = score(
        _skill("Python", "Technology & Programming"),
        _skill(" python ", "Technology & Programming", SkillDirection.WANTED),
    )
    assert result.base_score == 100
    assert result.compatible is True


def test_exact_title_wins_even_across_categories():
    result = score(_skill("Spanish", "Languages"), _skill("spanish", "Teaching & Tutoring"))
    assert result.base_score == 100


def test_same_category_uses_default_affinity():
    result = score(
        _skill("Python", "Technology & Programming"),
        _skill("JavaScript", "Technology & Programming"),
    )
    assert result.base_score == 80
    assert result.compatible is True


def test_same_category_affinity_bounds():
    low = CategoryAffinity.from_pairs(same_category={"Languages": 0.0})
    high = CategoryAffinity.from_pairs(same_category={"languages": 1.0})
    offered, wanted = _skill("French", "Languages"), _skill("German", "Languages")
    assert score(offered, wanted, low).base_score == 70
    assert score(offered, wanted, high).base_score == 90


def test_cross_category_is_symmetric_and_bounded():
    a = _skill("Python", "Technology & Programming")
    b = _skill("CAD", "Engineering")
    forward = score(a, b).base_score
    backward = score(b, a).base_score
    assert forward == backward == 45
    assert 0 <= forward <= 50


def test_unrelated_categories_are_incompatible():
    result = score(_skill("Guitar", "Music & Audio"), _skill("Tax law", "Legal & Compliance"))
    assert result.base_score == 0
    assert result.compatible is False


def test_floor_is_configurable():
    a = _skill("Python", "Technology & Programming")
    b = _skill("Figma", "Design & Creative")
    # 50 * 0.4 = 20
    assert score(a, b).compatible is False
    assert score(a, b, CategoryAffinity.from_pairs(floor=20)).compatible is True


def test_missing_category_raises_invalid_input():
    with pytest.raises(InvalidInput):
        score(_skill("Python", None), _skill("Python", "Technology & Programming"))
    with pytest.raises(InvalidInput):
        score(_skill("Python", "Technology & Programming"), _skill("Python", "  "))


def test_affinity_out_of_range_rejected():
    with pytest.raises(InvalidInput):
        CategoryAffinity.from_pairs(pairs=[("Languages", "Engineering", 1.5)])


def test_affinity_from_settings():
    settings = Settings(
        category_affinity={"Languages": 1.0},
        cross_category_affinity=[("Music & Audio", "Languages", 0.9)],
        compatibility_floor=50,
    )
    table = CategoryAffinity.from_settings(settings)
    assert score(_skill("French", "Languages"), _skill("German", "Languages"), table).base_score == 90
    # Configured pairs replace the built-in table
    assert table.between("Technology & Programming", "Engineering") == 0
    cross = score(_skill("Singing", "Music & Audio"), _skill("Italian", "Languages"), table)
    assert cross.base_score == 45
    assert cross.compatible is False


def test_settings_reject_affinity_out_of_range():
    with pytest.raises(ValidationError):
        Settings(category_affinity={"Languages": 2})
