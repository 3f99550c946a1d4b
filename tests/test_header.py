import base64
import io
import re

import pytest

from mimekit.errors import MALFORMED_HEADER
from mimekit.header import (
    Header,
    canonical_key,
    decode_to_utf8_base64_header,
    quoted_display_name,
    read_header,
)


@pytest.mark.parametrize(
    "value, want",
    [
        ("no encoding", "no encoding"),
        ("=?utf-8?q?abcABC_=24_=c2=a2_=e2=82=ac?=", "=?UTF-8?b?YWJjQUJDICQgwqIg4oKs?="),
        ("=?iso-8859-1?q?#=a3_c=a9_r=ae_u=b5?=", "=?UTF-8?b?I8KjIGPCqSBywq4gdcK1?="),
        ("=?big5?q?=a1=5d_=a1=61_=a1=71?=", "=?UTF-8?b?77yIIO+9myDjgIg=?="),
        ("=?UTF-8?Q?Miros=C5=82aw?= <u@h>", "=?UTF-8?b?TWlyb3PFgmF3?= <u@h>"),
        (
            "First Last <u@h> (=?iso-8859-1?q?#=a3_c=a9_r=ae_u=b5?=)",
            "First Last <u@h> (=?UTF-8?b?I8KjIGPCqSBywq4gdcK1?=)",
        ),
        ('"=?UTF-8?b?TWlyb3PFgmF3?="<u@h>', "=?UTF-8?b?Ik1pcm9zxYJhdyI=?= <u@h>"),
    ],
)
def test_decode_to_utf8_base64_header(value, want):
    assert decode_to_utf8_base64_header(value) == want


def test_decode_is_idempotent():
    once = decode_to_utf8_base64_header("=?iso-8859-1?q?#=a3_c=a9_r=ae_u=b5?= <u@h>")
    assert decode_to_utf8_base64_header(once) == once


def test_decode_splits_tokens_on_tabs():
    assert decode_to_utf8_base64_header("a\t=?utf-8?q?=C2=A2?=") == "a =?UTF-8?b?wqI=?="


def test_decode_ascii_words_stay_plain():
    assert decode_to_utf8_base64_header("=?utf-8?q?a?= =?utf-8?q?b?=") == "a b"


def test_decode_adjacent_words_join():
    assert decode_to_utf8_base64_header("=?utf-8?q?a?==?utf-8?q?b?=") == "ab"


def test_decode_unknown_charset_left_alone():
    value = "=?x-unknown-zz?q?abc?="
    assert decode_to_utf8_base64_header(value) == value


def test_decode_invalid_base64_left_alone():
    value = "=?utf-8?b?!!!?="
    assert decode_to_utf8_base64_header(value) == value


def test_decode_long_value_is_split_into_short_words():
    value = "=?utf-8?q?" + "=C3=A9" * 30 + "?="
    result = decode_to_utf8_base64_header(value)
    words = result.split(" ")
    assert len(words) == 2
    decoded = b""
    for word in words:
        assert len(word) <= 75
        match = re.fullmatch(r"=\?UTF-8\?b\?([A-Za-z0-9+/=]+)\?=", word)
        assert match is not None
        decoded += base64.b64decode(match.group(1))
    assert decoded.decode("utf-8") == "é" * 30


@pytest.mark.parametrize(
    "value, want",
    [
        ("plain <u@h>", "plain <u@h>"),
        ('"name"<u@h>', '"name" <u@h>'),
        ('"a" "b"<u@h>', '"a" "b" <u@h>'),
    ],
)
def test_quoted_display_name(value, want):
    assert quoted_display_name(value) == want


@pytest.mark.parametrize(
    "name, want",
    [
        ("content-type", "Content-Type"),
        ("MIME-VERSION", "Mime-Version"),
        ("x-foo-bar", "X-Foo-Bar"),
        ("Audio Mode", "Audio Mode"),
        ("name=value", "name=value"),
        ("", ""),
    ],
)
def test_canonical_key(name, want):
    assert canonical_key(name) == want


def test_header_is_case_insensitive_and_multivalued():
    header = Header()
    header.add("x-test", "one")
    header.add("X-TEST", "two")
    assert header.get("X-Test") == "one"
    assert header.get_all("x-test") == ["one", "two"]
    assert "x-TEST" in header
    assert len(header) == 1
    assert header.keys() == ["X-Test"]


def test_header_set_replaces_and_delete_removes():
    header = Header({"To": ["a", "b"], "Subject": "hi"})
    header.set("to", "c")
    assert header.get_all("To") == ["c"]
    header.delete("subject")
    assert "Subject" not in header
    assert header.get("Subject") == ""
    assert header.get_all("Subject") == []
    header.delete("missing")
    assert list(header) == ["To"]


def test_header_from_pairs_and_copy():
    header = Header([("from", "a"), ("to", "b"), ("to", "c")])
    copy = Header(header)
    assert copy == header
    copy.add("To", "d")
    assert header.get_all("To") == ["b", "c"]
    assert copy.get_all("To") == ["b", "c", "d"]


PREFIX = b"From: hooman\n \n being\n"
SUFFIX = b"Subject: hi\n\nPart body\n"
SDATA = "x" * 16 * 1024

READ_CASES = [
    ("basic crlf", "Foo: bar\r\n", "Foo", "bar", True, ()),
    ("basic lf", "To: anybody\n", "To", "anybody", True, ()),
    ("hyphenated", "Content-Language: en\r\n", "Content-Language", "en", True, ()),
    ("numeric", "Privilege: 127\n", "Privilege", "127", True, ()),
    ("space before colon", "SID : 0\r\n", "SID", "0", True, ()),
    ("space in name", "Audio Mode : None\r\n", "Audio Mode", "None", True, ()),
    ("sdata", "Cookie: " + SDATA + "\r\n", "Cookie", SDATA, True, ()),
    ("missing name", ": line1=foo\r\n", "", "", False, ()),
    (
        "blank line in continuation",
        "X-Continuation: line1=foo\r\n \r\n line2=bar\r\n",
        "X-Continuation",
        "line1=foo  line2=bar",
        True,
        (),
    ),
    (
        "lf-space continuation",
        "Content-Type: text/plain;\n charset=us-ascii\n",
        "Content-Type",
        "text/plain; charset=us-ascii",
        True,
        (),
    ),
    (
        "lf-tab continuation",
        "X-Tabbed-Continuation: line1=foo;\n\tline2=bar\n",
        "X-Tabbed-Continuation",
        "line1=foo; line2=bar",
        True,
        (),
    ),
    ("equals in name", "name=value:text\n", "name=value", "text", True, ()),
    (
        "no space before continuation",
        "X-Bad-Continuation: line1=foo;\nline2=bar\n",
        "X-Bad-Continuation",
        "line1=foo; line2=bar",
        False,
        (),
    ),
    (
        "not really a continuation",
        "X-Not-Continuation: line1=foo;\nline2: bar\n",
        "X-Not-Continuation",
        "line1=foo;",
        True,
        ("line2",),
    ),
    (
        "continuation with header style",
        "X-Continuation: line1=foo;\n not-a-header 15 X-Not-Header: bar\n",
        "X-Continuation",
        "line1=foo; not-a-header 15 X-Not-Header: bar",
        True,
        (),
    ),
    (
        "multiline continuation with header style, few spaces",
        "X-Continuation-DKIM-like: line1=foo;\n"
        " h=Subject:From:Reply-To:To:Date:Message-ID: List-ID:List-Unsubscribe:\n"
        " Content-Type:MIME-Version;\n",
        "X-Continuation-DKIM-like",
        "line1=foo;"
        " h=Subject:From:Reply-To:To:Date:Message-ID: List-ID:List-Unsubscribe:"
        " Content-Type:MIME-Version;",
        True,
        (),
    ),
    (
        "multiline continuation, few colons",
        "Authentication-Results: mx.google.com;\n"
        "       spf=pass (google.com: sender)\n"
        "       dkim=pass header.i=@1;\n"
        "       dkim=pass header.i=@2\n",
        "Authentication-Results",
        "mx.google.com; spf=pass (google.com: sender) dkim=pass header.i=@1;"
        " dkim=pass header.i=@2",
        True,
        (),
    ),
    (
        "continuation containing early name-colon",
        "DKIM-Signature: a=rsa-sha256; v=1; q=dns/txt;\r\n"
        "  s=krs; t=1603674005; h=Content-Transfer-Encoding: Mime-Version:\r\n"
        "  Content-Type: Subject: From: To: Message-Id: Sender: Date;\r\n",
        "DKIM-Signature",
        "a=rsa-sha256; v=1; q=dns/txt;"
        " s=krs; t=1603674005; h=Content-Transfer-Encoding: Mime-Version:"
        " Content-Type: Subject: From: To: Message-Id: Sender: Date;",
        True,
        (),
    ),
]


@pytest.mark.parametrize(
    "label, text, hname, want, correct, extras",
    READ_CASES,
    ids=[case[0] for case in READ_CASES],
)
def test_read_header(label, text, hname, want, correct, extras):
    stream = io.BytesIO(PREFIX + text.encode("ascii") + SUFFIX)
    header, problems = read_header(stream)

    assert header.get("From") == "hooman  being"
    assert header.get("Subject") == "hi"
    assert header.get(hname) == want
    assert len(problems) == (0 if correct else 1)

    for name in ("From", "Subject", hname, *extras):
        header.delete(name)
    assert header.keys() == []

    assert stream.readline() == b"Part body\n"


def test_read_header_problem_kinds():
    stream = io.BytesIO(b": bad\nA: b\nc\n\n")
    header, problems = read_header(stream)
    assert header.get("A") == "b c"
    assert [(p.name, p.severe) for p in problems] == [
        (MALFORMED_HEADER, True),
        (MALFORMED_HEADER, False),
    ]


def test_read_header_at_end_of_stream():
    header, problems = read_header(io.BytesIO(b"Foo: bar"))
    assert header.get("Foo") == "bar"
    assert problems == []


def test_read_header_empty_stream():
    header, problems = read_header(io.BytesIO(b""))
    assert len(header) == 0
    assert problems == []


def test_read_header_rejects_indented_first_line():
    with pytest.raises(ValueError):
        read_header(io.BytesIO(b" indented: x\n\nbody\n"))