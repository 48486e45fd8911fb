"""
Input validation and sanitization. Used by API and services.
"""
import re
from html import escape

# Email: reasonable format, no leading/trailing spaces
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

SKILL_TITLE_MIN_LENGTH = 2
SKILL_TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
WEEKLY_HOURS_MAX = 168

SKILL_CATEGORIES = (
    "Technology & Programming",
    "Business & Finance",
    "Design & Creative",
    "Marketing & Sales",
    "Writing & Content",
    "Music & Audio",
    "Video & Photography",
    "Health & Fitness",
    "Cooking & Food",
    "Languages",
    "Teaching & Tutoring",
    "Crafts & DIY",
    "Sports & Recreation",
    "Personal Development",
    "Science & Research",
    "Engineering",
    "Legal & Compliance",
    "Real Estate & Property",
    "Fashion & Beauty",
    "Gaming & Esports",
    "Social Skills",
    "Other",
)


def validate_email(email: str) -> bool:
    """Return True if email format is valid."""
    if not email or len(email) > 255:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_password_strength(password: str) -> tuple[bool, str]:
    """
    Check password meets policy. Returns (ok, message).
    Policy: min 8 chars, at least one uppercase, one lowercase, one digit.
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters"
    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"
    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"
    if not re.search(r"\d", password):
        return False, "Password must contain at least one number"
    return True, ""


def validate_skill_title(title: str) -> tuple[bool, str]:
    stripped = (title or "").strip()
    if len(stripped) < SKILL_TITLE_MIN_LENGTH:
        return False, f"Skill title must be at least {SKILL_TITLE_MIN_LENGTH} characters"
    if len(stripped) > SKILL_TITLE_MAX_LENGTH:
        return False, f"Skill title must be at most {SKILL_TITLE_MAX_LENGTH} characters"
    return True, ""


def validate_category(category: str | None) -> tuple[bool, str]:
    if not category or not category.strip():
        return False, "Category is required"
    if category.strip() not in SKILL_CATEGORIES:
        return False, f"Unknown category: {category.strip()}"
    return True, ""


def sanitize_string(value: str | None, max_length: int = 10_000) -> str:
    """Escape HTML and limit length to prevent XSS and overflow."""
    if value is None:
        return ""
    s = str(value).strip()[:max_length]
    return escape(s)
