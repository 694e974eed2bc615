# tutorhub/utils/validation.py
"""
Utilities for input validation
"""
from urllib.parse import urlparse

from bson import ObjectId
from bson.errors import InvalidId

from tutorhub.utils.errors import BadRequestError

MIN_YEAR = 1970
MAX_YEAR = 9998  # datetime(year + 1, 1, 1) phải hợp lệ


def validate_object_id(id_str, field_name: str = "ID") -> ObjectId:
    """
    Validate MongoDB ObjectId format
    """
    if isinstance(id_str, ObjectId):
        return id_str

    if not id_str:
        raise BadRequestError(f"{field_name} is required")

    try:
        return ObjectId(str(id_str))
    except (InvalidId, TypeError, ValueError):
        raise BadRequestError(f"Invalid {field_name}")


def validate_year(value) -> int:
    """
    Năm cho báo cáo doanh thu: số nguyên trong [MIN_YEAR, MAX_YEAR]
    """
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        raise BadRequestError("Invalid year")

    if year < MIN_YEAR or year > MAX_YEAR:
        raise BadRequestError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")

    return year


def validate_url(value, field_name: str = "URL") -> str:
    if not value or not isinstance(value, str):
        raise BadRequestError(f"{field_name} is required")

    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise BadRequestError(f"Invalid {field_name}")

    if len(value) > 2048:
        raise BadRequestError(f"{field_name} is too long")

    return value


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")
