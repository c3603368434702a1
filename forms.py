"""
Coercion of add-property form submissions into typed values.

Form values arrive as a multimap of field name to strings and uploaded files
(starlette FormData). Dotted names such as "location.city" address fields of
nested groups.
"""

import math
import re
from typing import Dict, List, Optional

from starlette.datastructures import FormData, UploadFile

from schemas import Location, PropertySubmission, Rates, SellerInfo

NUMERIC_LITERAL = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)")


class SubmissionError(Exception):
    """One or more form fields are missing or malformed."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors)
        super().__init__(f"Invalid submission: {fields}")


def get_data_as_string(form: FormData, key: str) -> str:
    value = form.get(key)
    if not isinstance(value, str):
        raise SubmissionError([{"field": key, "message": "Field is required"}])
    return value


def to_number(value: str) -> float:
    """Bare numeric cast: blank input is 0, anything unparseable is NaN."""
    text = value.strip()
    if text == "":
        return 0.0
    if not NUMERIC_LITERAL.fullmatch(text):
        return math.nan
    return float(text)


def parse_optional_number(form: FormData, key: str) -> Optional[float]:
    value = form.get(key)
    if not isinstance(value, str) or value.strip() == "":
        return None
    return to_number(value)


def get_strings(form: FormData, key: str) -> List[str]:
    seen = []
    for value in form.getlist(key):
        if isinstance(value, str) and value not in seen:
            seen.append(value)
    return seen


def get_attached_files(form: FormData, key: str = "images") -> List[UploadFile]:
    # browsers send an empty, unnamed part when no file was picked
    return [
        value for value in form.getlist(key)
        if isinstance(value, UploadFile) and value.filename
    ]


def _is_valid_measure(value: float) -> bool:
    return math.isfinite(value) and value >= 0


def parse_submission(form: FormData, strict: bool = False) -> PropertySubmission:
    """
    Build a PropertySubmission from the raw form.

    All field errors are collected and raised together. Outside strict mode
    numeric fields follow the lenient cast in to_number() and only missing
    fields are errors.
    """
    errors: List[Dict[str, str]] = []

    def text(key: str) -> str:
        try:
            return get_data_as_string(form, key)
        except SubmissionError as exc:
            errors.extend(exc.errors)
            return ""

    def measure(key: str) -> float:
        raw = form.get(key)
        if not isinstance(raw, str):
            errors.append({"field": key, "message": "Field is required"})
            return 0.0
        value = to_number(raw)
        if strict and (raw.strip() == "" or not _is_valid_measure(value)):
            errors.append({"field": key, "message": "Must be a non-negative number"})
        return value

    def rate(key: str) -> Optional[float]:
        value = parse_optional_number(form, key)
        if strict and value is not None and not _is_valid_measure(value):
            errors.append({"field": key, "message": "Must be a non-negative number"})
        return value

    fields = dict(
        name=text("name"),
        type=text("type"),
        location=Location(
            street=text("location.street"),
            city=text("location.city"),
            state=text("location.state"),
            zipcode=text("location.zipcode"),
        ),
        beds=measure("beds"),
        baths=measure("baths"),
        square_feet=measure("square_feet"),
        description=text("description"),
        amenities=get_strings(form, "amenities"),
        rates=Rates(
            nightly=rate("rates.nightly"),
            weekly=rate("rates.weekly"),
            monthly=rate("rates.monthly"),
        ),
        seller_info=SellerInfo(
            name=text("seller_info.name"),
            email=text("seller_info.email"),
            phone=text("seller_info.phone"),
        ),
    )
    if errors:
        raise SubmissionError(errors)
    return PropertySubmission(**fields)
