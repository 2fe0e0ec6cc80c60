"""
Operations on an in-memory student collection.

Two identifier comparisons live here on purpose. Lookups by path id use
``loose_id_match`` so a path segment such as ``"7"`` finds a record stored
with the number ``7``. The duplicate check on create uses
``strict_id_match`` and only collides on the same JSON type and value, so
``"7"`` and ``7`` can coexist in one collection.
"""
import math
import re
from decimal import Decimal
from typing import Any, Dict, List

from app.services.errors import ConflictError, NotFoundError, ValidationError

STUDENT_FIELDS = ("id", "firstName", "lastName", "year")
UPDATABLE_FIELDS = ("firstName", "lastName", "year")

INVALID_CREATE_BODY = "Invalid Body. Required: ID, firstName, lastName, year (number)."
INVALID_UPDATE_BODY = "Invalid Body. Numbers must be finite."

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_RADIX_RE = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_INFINITY = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def is_number(value: Any) -> bool:
    """True for JSON numbers; booleans are not numbers."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """Truthiness of a decoded JSON value.

    ``None``, ``False``, ``""``, zero and NaN are falsy. Empty arrays and
    objects are truthy.
    """
    if value is None or value is False:
        return False
    if is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def has_non_finite(value: Any) -> bool:
    """True when a NaN or infinite number appears anywhere in ``value``."""
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(has_non_finite(item) for item in value.values())
    if isinstance(value, list):
        return any(has_non_finite(item) for item in value)
    return False


def to_number(text: str) -> float:
    """Convert a path segment to a number, NaN when it is not numeric.

    Surrounding whitespace is ignored and a blank string converts to 0.
    Hex, octal and binary literals with a ``0x``/``0o``/``0b`` prefix are
    accepted, as are signed ``Infinity`` spellings.
    """
    text = text.strip()
    if text == "":
        return 0
    if _DECIMAL_RE.match(text):
        return float(text)
    if _RADIX_RE.match(text):
        return int(text, 0)
    return _INFINITY.get(text, math.nan)


def number_to_text(value: float) -> str:
    """Shortest text for a number: ``7.0`` is ``"7"``, ``1e-7`` is ``"1e-7"``."""
    if isinstance(value, int):
        if abs(value) < 1e21:
            return str(value)
        try:
            value = float(value)
        except OverflowError:
            return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(repr(value)), "f")
    mantissa, exponent = repr(value).split("e")
    return f"{mantissa}e{int(exponent):+d}"


def to_text(value: Any) -> str:
    """Text form of a decoded JSON value when compared with a string.

    Arrays join their items with commas (null items become empty),
    objects become ``[object Object]``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return number_to_text(value)
    if isinstance(value, list):
        return ",".join(to_text(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def loose_id_match(stored_id: Any, requested_id: str) -> bool:
    """Compare a stored id with an id taken from the request path.

    Strings compare verbatim. Numbers (and booleans, as 0/1) compare
    against the numeric value of the path segment. Arrays and objects
    compare by their text form, so ``[7]`` matches ``"7"``. A stored null
    never matches.
    """
    if isinstance(stored_id, str):
        return stored_id == requested_id
    if isinstance(stored_id, bool):
        stored_id = int(stored_id)
    if is_number(stored_id):
        return stored_id == to_number(requested_id)
    if isinstance(stored_id, (list, dict)):
        return to_text(stored_id) == requested_id
    return False


def strict_id_match(stored_id: Any, candidate_id: Any) -> bool:
    """Same JSON type and same value. Integers and floats share one number type."""
    if is_number(stored_id) and is_number(candidate_id):
        return stored_id == candidate_id
    if isinstance(stored_id, (dict, list)) or isinstance(candidate_id, (dict, list)):
        # Distinct decoded containers are never identical
        return False
    return type(stored_id) is type(candidate_id) and stored_id == candidate_id


def find_student_index(students: List[Dict[str, Any]], student_id: str) -> int:
    """Index of the first record whose id loosely matches ``student_id``."""
    for index, student in enumerate(students):
        if loose_id_match(student.get("id"), student_id):
            return index
    raise NotFoundError(f"Student {student_id} not found")


def find_student(students: List[Dict[str, Any]], student_id: str) -> Dict[str, Any]:
    return students[find_student_index(students, student_id)]


def validate_new_student(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Check a create body and build the record from its four fields.

    Extra keys in ``payload`` are dropped.
    """
    if not isinstance(payload, dict):
        raise ValidationError(INVALID_CREATE_BODY)

    if not (
        is_truthy(payload.get("id"))
        and is_truthy(payload.get("firstName"))
        and is_truthy(payload.get("lastName"))
        and is_number(payload.get("year"))
    ):
        raise ValidationError(INVALID_CREATE_BODY)

    student = {field: payload[field] for field in STUDENT_FIELDS}
    if has_non_finite(student):
        raise ValidationError(INVALID_CREATE_BODY)
    return student


def validate_student_update(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Reject update values that cannot be written back as JSON.

    Values are otherwise taken as given.
    """
    if has_non_finite(changes):
        raise ValidationError(INVALID_UPDATE_BODY)
    return changes


def insert_student(students: List[Dict[str, Any]], student: Dict[str, Any]) -> Dict[str, Any]:
    """Append ``student`` unless a record with a strictly equal id exists."""
    if any(strict_id_match(s.get("id"), student["id"]) for s in students):
        raise ConflictError(f"Student id {student['id']!r} already exists")
    students.append(student)
    return student


def apply_student_update(student: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Overwrite the updatable fields present in ``changes``, in place.

    Keys outside ``UPDATABLE_FIELDS`` (including ``id``) are ignored and
    values are taken as given.
    """
    for field in UPDATABLE_FIELDS:
        if field in changes:
            student[field] = changes[field]
    return student
