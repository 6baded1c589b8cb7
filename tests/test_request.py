import json

import pytest

from wrapix_notify.models.request import (
    DEFAULT_TITLE,
    MAX_RECORD_BYTES,
    MalformedRecord,
    NotificationRequest,
    decode_request,
    encode_request,
)


@pytest.mark.parametrize(
    "title",
    [
        'He said "done"',
        "C:\\build\\out",
        "line one\nline two",
        '{"title": "nested"}\n{"x": 1}',
        "tab\tand unicode \u2713",
    ],
)
def test_awkward_titles_survive_the_wire(title):
    req = NotificationRequest(title=title, message="m", sound="Glass", session_id="s:1.0")
    wire = encode_request(req)
    assert wire.endswith(b"\n")
    assert wire.count(b"\n") == 1
    assert decode_request(wire) == req


def test_wire_record_has_all_keys():
    data = json.loads(encode_request(NotificationRequest(message="hi")))
    assert data == {"title": DEFAULT_TITLE, "message": "hi", "sound": "", "session_id": ""}


def test_empty_object_is_default_request():
    assert decode_request(b"{}") == NotificationRequest()


def test_defaults_applied_for_absent_null_or_empty_fields():
    req = decode_request('{"title": "", "message": null, "session_id": "abc"}')
    assert req.title == DEFAULT_TITLE
    assert req.message == ""
    assert req.sound == ""
    assert req.session_id == "abc"


def test_unknown_keys_ignored():
    req = decode_request(b'{"title": "Build", "message": "done", "urgency": "high"}')
    assert req == NotificationRequest(title="Build", message="done")


@pytest.mark.parametrize(
    "line",
    [
        b"not json",
        b'{"title": "unterminated',
        b"[1, 2]",
        b'"just a string"',
        b'{"title": 5}',
        b'{"message": ["a"]}',
        b"\xff\xfe{}",
    ],
)
def test_malformed_records(line):
    with pytest.raises(MalformedRecord):
        decode_request(line)


def test_oversized_record_is_malformed():
    big = encode_request(NotificationRequest(message="x" * MAX_RECORD_BYTES))
    with pytest.raises(MalformedRecord):
        decode_request(big)


def test_request_is_immutable():
    req = NotificationRequest()
    with pytest.raises(Exception):
        req.title = "other"  # type: ignore[misc]


def test_oversized_text_record_is_malformed():
    text = encode_request(NotificationRequest(message="x" * MAX_RECORD_BYTES)).decode("utf-8")
    with pytest.raises(MalformedRecord):
        decode_request(text)


@pytest.mark.parametrize("line", [b"[" * 60000 + b"\n", "{\"a\":" * 12000])
def test_deeply_nested_json_is_malformed(line):
    with pytest.raises(MalformedRecord):
        decode_request(line)
