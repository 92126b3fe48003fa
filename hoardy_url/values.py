# Copyright (c) 2024 Jan Malakhovski <oxij@oxij.org>
#
# This file is a part of `hoardy-url` project.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <http://www.gnu.org/licenses/>.

"""Parsing and un-parsing of `key=value&...` URL query strings."""

import logging as _logging
import re as _re

from kisstdlib.exceptions import *

from .escape import *

class Values(dict[bytes, list[bytes]]):
    """Query parameters: a case-sensitive key maps to a list of values in
       the order they appeared in.
    """

    def get(self, key : bytes) -> bytes: # type: ignore
        """Get the first value associated with `key`, or `b""`."""
        vs = super().get(key)
        if vs is None or len(vs) == 0:
            return b""
        return vs[0]

    def set(self, key : bytes, value : bytes) -> None:
        self[key] = [value]

    def add(self, key : bytes, value : bytes) -> None:
        self.setdefault(key, []).append(value)

    def delete(self, key : bytes) -> None:
        self.pop(key, None)

    def encode(self) -> bytes:
        """Encode into "URL encoded" form ("bar=baz&foo=quux"), sorted by key."""
        res = []
        for k in sorted(self.keys()):
            prefix = query_escape(k) + b"="
            for v in self[k]:
                res.append(prefix + query_escape(v))
        return b"&".join(res)

query_sep_re = _re.compile(rb"[&;]")

def parse_query(query : bytes) -> tuple[Values, EscapeError | None]:
    """Parse URL-encoded query string.

       Returns all the parameters that could be decoded, together with the
       first decoding error, if any. Both `&` and `;` work as separators.
    """
    res = Values()
    err : EscapeError | None = None
    for e in query_sep_re.split(query):
        if e == b"":
            continue
        key, _, value = e.partition(b"=")
        try:
            key = query_unescape(key)
            value = query_unescape(value)
        except EscapeError as exc:
            _logging.warning("`parse_query` skipped `%s` of `%s`: %s", e, query, str(exc))
            if err is None:
                err = exc
            continue
        res.add(key, value)
    return res, err

def test_parse_query() -> None:
    def check(query : bytes, value : dict[bytes, list[bytes]]) -> None:
        res, err = parse_query(query)
        if err is not None:
            raise CatastrophicFailure("while parsing %s, got unexpected error %s", repr(query), str(err))
        if res != value:
            raise CatastrophicFailure("while parsing %s, expected %s, got %s", repr(query), repr(value), repr(res))

    check(b"", {})
    check(b"a=1&b=2", {b"a": [b"1"], b"b": [b"2"]})
    check(b"a=1&a=2&a=banana", {b"a": [b"1", b"2", b"banana"]})
    check(b"ascii=%3Ckey%3A+0x90%3E", {b"ascii": [b"<key: 0x90>"]})
    check(b"a=1;b=2", {b"a": [b"1"], b"b": [b"2"]})
    check(b"a=1&a=2;a=banana", {b"a": [b"1", b"2", b"banana"]})
    check(b"&&a=1;;&", {b"a": [b"1"]})
    check(b"a&b=", {b"a": [b""], b"b": [b""]})
    check(b"a=b=c", {b"a": [b"b=c"]})
    check(b"A=1&a=2", {b"A": [b"1"], b"a": [b"2"]})

def test_parse_query_failure() -> None:
    res, err = parse_query(b"%gh&%ij&ok=1&x=%zz")
    assert err is not None
    assert err.fragment == b"%gh"
    assert "%gh" in str(err)
    assert res == {b"ok": [b"1"]}

def test_Values() -> None:
    v, _ = parse_query(b"foo=bar&bar=1&bar=2")
    assert len(v) == 2
    assert v.get(b"foo") == b"bar"
    # case sensitive
    assert v.get(b"Foo") == b""
    assert v.get(b"bar") == b"1"
    assert v.get(b"baz") == b""

    v.delete(b"bar")
    assert v.get(b"bar") == b""
    v.delete(b"bar")

    v.add(b"foo", b"baz")
    assert v[b"foo"] == [b"bar", b"baz"]
    v.set(b"foo", b"quux")
    assert v[b"foo"] == [b"quux"]

    v[b"empty"] = []
    assert v.get(b"empty") == b""

def test_Values_encode() -> None:
    def check(v : Values, value : bytes) -> None:
        res = v.encode()
        if res != value:
            raise CatastrophicFailure("while encoding %s, expected %s, got %s", repr(v), repr(value), repr(res))

    check(Values(), b"")
    check(Values({b"b": [b"2"], b"a": [b"1"]}), b"a=1&b=2")
    check(Values({b"q": [b"puppies"], b"oe": [b"utf8"]}), b"oe=utf8&q=puppies")
    check(Values({b"q": [b"dogs", b"&", b"7"]}), b"q=dogs&q=%26&q=7")
    check(Values({
        b"a": [b"a1", b"a2", b"a3"],
        b"b": [b"b1", b"b2", b"b3"],
        b"c": [b"c1", b"c2", b"c3"],
    }), b"a=a1&a=a2&a=a3&b=b1&b=b2&b=b3&c=c1&c=c2&c=c3")
    check(Values({b"a b": [b"c d"], b"e": []}), b"a+b=c+d")
