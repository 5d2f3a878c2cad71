# tests/test_field_validators.py - Webhook, category name, keyword and metric target rules
import pytest

from exceptions import FieldValidationError
from field_validators import (
    MAX_WEBHOOK_URLS, process_signal_any_keywords, to_stored_integer,
    validate_category_name, validate_metric_target, validate_webhook_urls,
)


def test_valid_webhook_urls_pass():
    validate_webhook_urls(["https://hooks.example.com/incident", "http://localhost:8065/hook"])
    validate_webhook_urls([])


@pytest.mark.parametrize("url", ["not a url", "ftp://files.example.com/x", "/relative/path", "https://"])
def test_invalid_webhook_url_rejected(url):
    with pytest.raises(FieldValidationError) as exc:
        validate_webhook_urls(["https://ok.example.com", url], field="webhook_on_creation_urls")
    assert exc.value.field == "webhook_on_creation_urls"


def test_too_many_webhook_urls_rejected():
    urls = [f"https://hooks.example.com/{i}" for i in range(MAX_WEBHOOK_URLS + 1)]
    with pytest.raises(FieldValidationError):
        validate_webhook_urls(urls)


def test_category_name_length():
    validate_category_name("")
    validate_category_name("x" * 22)
    with pytest.raises(FieldValidationError) as exc:
        validate_category_name("x" * 23)
    assert exc.value.field == "category_name"


def test_signal_keywords_normalised():
    keywords = ["  sev1 ", "", "outage", "sev1", "   ", "a,b", "outage "]
    assert process_signal_any_keywords(keywords) == ["sev1", "outage"]


def test_metric_target_must_not_be_negative():
    assert validate_metric_target(0) == 0
    assert validate_metric_target(90.9) == 90
    with pytest.raises(FieldValidationError):
        validate_metric_target(-1)


def test_stored_integer_bounds():
    assert to_stored_integer(3600.5, "seconds") == 3600
    assert to_stored_integer(2.0 ** 62, "seconds") == 2 ** 62
    assert to_stored_integer(-60, "seconds") == -60


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), 1e30, -1e30, 2.0 ** 63])
def test_stored_integer_rejects_unstorable_values(value):
    with pytest.raises(FieldValidationError) as exc:
        to_stored_integer(value, "reminder_timer_default_seconds")
    assert exc.value.field == "reminder_timer_default_seconds"
