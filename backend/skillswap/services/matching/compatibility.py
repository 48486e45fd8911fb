"""
Skill compatibility: how well an offered skill satisfies a wanted one.
Exact title 100; same category 70-90 by category affinity; cross-category 0-50 by pair affinity.
"""
from dataclasses import dataclass, field

from skillswap.config import Settings
from skillswap.domain.entities import SkillListing
from skillswap.domain.errors import InvalidInput

EXACT_TITLE_SCORE = 100.0
SAME_CATEGORY_MIN = 70.0
SAME_CATEGORY_SPAN = 20.0
CROSS_CATEGORY_MAX = 50.0
DEFAULT_COMPATIBILITY_FLOOR = 40.0

# Symmetric; unlisted pairs score 0.
DEFAULT_CROSS_CATEGORY_AFFINITY: tuple[tuple[str, str, float], ...] = (
    ("Technology & Programming", "Engineering", 0.9),
    ("Technology & Programming", "Science & Research", 0.7),
    ("Technology & Programming", "Design & Creative", 0.4),
    ("Design & Creative", "Video & Photography", 0.8),
    ("Design & Creative", "Fashion & Beauty", 0.5),
    ("Marketing & Sales", "Business & Finance", 0.8),
    ("Marketing & Sales", "Writing & Content", 0.6),
    ("Languages", "Teaching & Tutoring", 0.6),
    ("Music & Audio", "Video & Photography", 0.5),
    ("Health & Fitness", "Sports & Recreation", 0.8),
    ("Personal Development", "Social Skills", 0.7),
)


def _key(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class CompatibilityResult:
    compatible: bool
    base_score: float


@dataclass
class CategoryAffinity:
    """Affinity tables driving the non-exact compatibility paths."""

    same_category: dict[str, float] = field(default_factory=dict)
    cross_category: dict[frozenset[str], float] = field(default_factory=dict)
    default_same_category: float = 0.5
    floor: float = DEFAULT_COMPATIBILITY_FLOOR

    @classmethod
    def from_pairs(
        cls,
        pairs: tuple[tuple[str, str, float], ...] | list[tuple[str, str, float]] = DEFAULT_CROSS_CATEGORY_AFFINITY,
        same_category: dict[str, float] | None = None,
        default_same_category: float = 0.5,
        floor: float = DEFAULT_COMPATIBILITY_FLOOR,
    ) -> "CategoryAffinity":
        cross: dict[frozenset[str], float] = {}
        for a, b, value in pairs:
            if not 0 <= value <= 1:
                raise InvalidInput(f"Affinity for {a!r}/{b!r} must be between 0 and 1")
            cross[frozenset((_key(a), _key(b)))] = float(value)
        same = {_key(k): float(v) for k, v in (same_category or {}).items()}
        return cls(
            same_category=same,
            cross_category=cross,
            default_same_category=default_same_category,
            floor=floor,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CategoryAffinity":
        pairs = settings.cross_category_affinity
        return cls.from_pairs(
            pairs=DEFAULT_CROSS_CATEGORY_AFFINITY if pairs is None else pairs,
            same_category=settings.category_affinity,
            default_same_category=settings.default_category_affinity,
            floor=settings.compatibility_floor,
        )

    def within(self, category: str) -> float:
        return self.same_category.get(_key(category), self.default_same_category)

    def between(self, category_a: str, category_b: str) -> float:
        return self.cross_category.get(frozenset((_key(category_a), _key(category_b))), 0.0)


DEFAULT_AFFINITY = CategoryAffinity.from_pairs()


def _require_category(skill: SkillListing) -> str:
    if not skill.category or not skill.category.strip():
        raise InvalidInput(f"Skill {skill.id!r} has no category")
    return skill.category


def score(
    offered: SkillListing,
    wanted: SkillListing,
    affinity: CategoryAffinity | None = None,
) -> CompatibilityResult:
    """Compatibility of an offered skill against a wanted skill (0-100)."""
    table = affinity or DEFAULT_AFFINITY
    offered_category = _require_category(offered)
    wanted_category = _require_category(wanted)

    if _key(offered.title) == _key(wanted.title):
        base = EXACT_TITLE_SCORE
    elif _key(offered_category) == _key(wanted_category):
        base = SAME_CATEGORY_MIN + SAME_CATEGORY_SPAN * table.within(offered_category)
    else:
        base = CROSS_CATEGORY_MAX * table.between(offered_category, wanted_category)

    base = round(base, 2)
    return CompatibilityResult(compatible=base >= table.floor, base_score=base)
