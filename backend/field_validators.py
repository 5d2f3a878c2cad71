# field_validators.py - Per-field rules applied before a playbook change is staged
import math
from typing import List

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from exceptions import FieldValidationError
from field_codec import DELIMITER

MAX_WEBHOOK_URLS = 64
MAX_CATEGORY_NAME_LENGTH = 22

# Range of the BigInteger columns numeric fields are stored in
MIN_STORED_INTEGER = -(2 ** 63)
MAX_STORED_INTEGER = 2 ** 63 - 1

_http_url = TypeAdapter(AnyHttpUrl)


def validate_webhook_urls(urls: List[str], field: str = "webhook_urls") -> None:
    """Every entry must be an absolute http(s) URL; any bad entry fails the lot."""
    if len(urls) > MAX_WEBHOOK_URLS:
        raise FieldValidationError(
            f"too many registered urls, limit to less than {MAX_WEBHOOK_URLS}", field=field,
        )
    for url in urls:
        try:
            _http_url.validate_python(url)
        except PydanticValidationError as e:
            reason = e.errors()[0].get("msg", "invalid URL") if e.errors() else "invalid URL"
            raise FieldValidationError(f"unable to parse webhook {url!r}: {reason}", field=field) from e


def validate_category_name(name: str) -> None:
    if len(name) > MAX_CATEGORY_NAME_LENGTH:
        raise FieldValidationError(
            f"invalid category name: {name} (maximum length is {MAX_CATEGORY_NAME_LENGTH} characters)",
            field="category_name",
        )


def process_signal_any_keywords(keywords: List[str]) -> List[str]:
    """Trim keywords, dropping empty, unencodable and repeated ones."""
    processed: List[str] = []
    seen = set()
    for keyword in keywords:
        keyword = keyword.strip()
        if not keyword or DELIMITER in keyword or keyword in seen:
            continue
        seen.add(keyword)
        processed.append(keyword)
    return processed


def to_stored_integer(value: float, field: str) -> int:
    """Truncate a JSON number to an integer that fits a BigInteger column."""
    if not math.isfinite(value):
        raise FieldValidationError(f"{field} must be a finite number, got {value}", field=field)
    stored = int(value)
    if not MIN_STORED_INTEGER <= stored <= MAX_STORED_INTEGER:
        raise FieldValidationError(f"{field} is out of range: {value}", field=field)
    return stored


def validate_metric_target(target: float) -> int:
    """Present targets must be finite, storable and not negative."""
    stored = to_stored_integer(target, "target")
    if stored < 0:
        raise FieldValidationError(f"metric target must not be negative, got {target}", field="target")
    return stored
