# tests/test_field_codec.py - Concatenated list column encoding
import pytest

import field_codec
from exceptions import FieldValidationError


def test_empty_list_encodes_to_empty_string():
    assert field_codec.encode([]) == ""


def test_decode_empty_and_missing():
    assert field_codec.decode("") == []
    assert field_codec.decode(None) == []


def test_encode_preserves_order():
    assert field_codec.encode(["u3", "u1", "u2"]) == "u3,u1,u2"


@pytest.mark.parametrize("values", [
    [],
    ["only"],
    ["b", "a", "b"],
    ["https://example.com/hook?x=1", "http://10.0.0.1:8080/a b"],
])
def test_decode_reverses_encode(values):
    assert field_codec.decode(field_codec.encode(values)) == values


def test_rejects_element_containing_delimiter():
    with pytest.raises(FieldValidationError) as exc:
        field_codec.encode(["ok", "not,ok"], field="signal_any_keywords")
    assert exc.value.field == "signal_any_keywords"
    assert "not,ok" in exc.value.message


def test_rejects_empty_element():
    # [""] would encode to "" and decode back as []
    with pytest.raises(FieldValidationError):
        field_codec.encode([""])
