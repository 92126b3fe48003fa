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

"""Percent-encoding and decoding of URL components, RFC 3986 section 2."""

import enum as _enum

from gettext import gettext

from kisstdlib.exceptions import *

class Encoding(_enum.Enum):
    """Which part of a URL is being escaped or unescaped."""
    PATH = 1
    USERINFO = 2
    QUERY_COMPONENT = 3
    FRAGMENT = 4

class URLErrorKind(_enum.Enum):
    MISSING_SCHEME = "missing protocol scheme"
    EMPTY_INPUT = "empty url"
    INVALID_REQUEST_URI = "invalid URI for request"
    PERCENT_ENCODING_IN_HOST = "hexadecimal escape in host"
    MALFORMED_ESCAPE = "invalid URL escape"

class EscapeError(Failure, ValueError):
    """A `%` not followed by two hexadecimal digits.

       `fragment` is the offending part of the input, at most 3 bytes long.
    """
    kind = URLErrorKind.MALFORMED_ESCAPE

    def __init__(self, fragment : bytes) -> None:
        super().__init__(gettext("invalid URL escape %s"), repr(fragment))
        self.fragment = fragment

# §2.3
unreserved_bytes = frozenset(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~")
# §2.2, the subset of reserved characters that URL components give meaning to
reserved_bytes = frozenset(b"$&+,/:;=?@")
hex_bytes = frozenset(b"0123456789ABCDEFabcdef")

# reserved bytes that still need escaping in a given context
_reserved_blacklist : dict[Encoding, frozenset[int]] = {
    # §3.3: the path is handled as a whole, so only `?` would end it early
    Encoding.PATH: frozenset(b"?"),
    # §3.2.1: `:` separates username from password when parsing
    Encoding.USERINFO: frozenset(b"@/?:"),
    # §3.4
    Encoding.QUERY_COMPONENT: reserved_bytes,
    # §4.1: the grammar allows everything
    Encoding.FRAGMENT: frozenset(),
}

def should_escape(c : int, mode : Encoding) -> bool:
    """Should byte `c` be escaped when it appears in a `mode` part of a URL."""
    if c in unreserved_bytes:
        return False
    elif c in reserved_bytes:
        return c in _reserved_blacklist[mode]
    return True

_escapers : dict[Encoding, list[bytes]] = {}

def _get_escaper(mode : Encoding) -> list[bytes]:
    try:
        return _escapers[mode]
    except KeyError:
        pass

    # build a table from bytes to their quotes
    escaper : list[bytes] = []
    for c in range(0, 256):
        if c == 0x20 and mode == Encoding.QUERY_COMPONENT:
            escaper.append(b"+")
        elif should_escape(c, mode):
            escaper.append(b"%%%02X" % (c,))
        else:
            escaper.append(bytes((c,)))
    _escapers[mode] = escaper
    return escaper

def escape(data : bytes, mode : Encoding) -> bytes:
    escaper = _get_escaper(mode)
    return b"".join([escaper[c] for c in data])

def unescape(data : bytes, mode : Encoding) -> bytes:
    """Inverse of `escape`.

       Raises `EscapeError` when some `%` is not followed by two hex digits.
       `+` decodes into a space only in `Encoding.QUERY_COMPONENT` mode.
    """
    plus = mode == Encoding.QUERY_COMPONENT
    res = bytearray()
    dlen = len(data)
    i = 0
    while i < dlen:
        c = data[i]
        if c == 0x25: # %
            if i + 2 >= dlen or data[i + 1] not in hex_bytes or data[i + 2] not in hex_bytes:
                raise EscapeError(data[i:i + 3])
            res.append(int(data[i + 1:i + 3], 16))
            i += 3
            continue
        elif c == 0x2B and plus: # +
            res.append(0x20)
        else:
            res.append(c)
        i += 1
    return bytes(res)

def query_escape(data : bytes) -> bytes:
    """Escape `data` so that it can be safely placed inside a URL query."""
    return escape(data, Encoding.QUERY_COMPONENT)

def query_unescape(data : bytes) -> bytes:
    return unescape(data, Encoding.QUERY_COMPONENT)

def test_should_escape() -> None:
    def check(c : bytes, mode : Encoding, value : bool) -> None:
        res = should_escape(c[0], mode)
        if res != value:
            raise CatastrophicFailure("while evaluating should_escape(%s, %s), expected %s, got %s", repr(c), mode, value, res)

    for mode in Encoding:
        for c in [b"a", b"z", b"A", b"Z", b"0", b"9", b"-", b"_", b".", b"~"]:
            check(c, mode, False)
        for c in [b" ", b"%", b"\x00", b"\x7f", b"\xff", b"<", b"[", b"!"]:
            check(c, mode, True)

    for c in [b":", b"/", b"?", b"@"]:
        check(c, Encoding.USERINFO, True)
    for c in [b"$", b"&", b"+", b",", b";", b"="]:
        check(c, Encoding.USERINFO, False)

    for c in reserved_bytes:
        check(bytes((c,)), Encoding.PATH, c == ord("?"))
        check(bytes((c,)), Encoding.QUERY_COMPONENT, True)
        check(bytes((c,)), Encoding.FRAGMENT, False)

def test_query_escape() -> None:
    def check(data : bytes, value : bytes) -> None:
        res = query_escape(data)
        if res != value:
            raise CatastrophicFailure("while escaping %s, expected %s, got %s", repr(data), repr(value), repr(res))
        back = query_unescape(res)
        if back != data:
            raise CatastrophicFailure("while unescaping %s, expected %s, got %s", repr(res), repr(data), repr(back))

    check(b"", b"")
    check(b"abc", b"abc")
    check(b"one two", b"one+two")
    check(b"10%", b"10%25")
    check(" ?&=#+%!<>#\"{}|\\^[]`☺\t:/@$'()*,;".encode("utf-8"),
          b"+%3F%26%3D%23%2B%25%21%3C%3E%23%22%7B%7D%7C%5C%5E%5B%5D%60%E2%98%BA%09%3A%2F%40%24%27%28%29%2A%2C%3B")

def test_escape_modes() -> None:
    assert escape(b"a b?c/d", Encoding.PATH) == b"a%20b%3Fc/d"
    assert escape(b"j@ne:p/w?x;y", Encoding.USERINFO) == b"j%40ne%3Ap%2Fw%3Fx;y"
    assert escape(b"a b#c?d", Encoding.FRAGMENT) == b"a%20b%23c?d"
    assert escape(b"\xe2\x98\xba", Encoding.PATH) == b"%E2%98%BA"

def test_unescape() -> None:
    def check(data : bytes, value : bytes) -> None:
        res = query_unescape(data)
        if res != value:
            raise CatastrophicFailure("while unescaping %s, expected %s, got %s", repr(data), repr(value), repr(res))

    check(b"", b"")
    check(b"abc", b"abc")
    check(b"1%41", b"1A")
    check(b"1%41%42%43", b"1ABC")
    check(b"%4a", b"J")
    check(b"%6F", b"o")
    check(b"a+b", b"a b")

    assert unescape(b"a+b", Encoding.PATH) == b"a+b"
    assert unescape(b"a+b%2B", Encoding.FRAGMENT) == b"a+b+"

    def check_fail(data : bytes, fragment : bytes) -> None:
        try:
            res = query_unescape(data)
        except EscapeError as exc:
            if exc.fragment != fragment:
                raise CatastrophicFailure("while unescaping %s, expected error on %s, got it on %s", repr(data), repr(fragment), repr(exc.fragment))
            assert exc.kind == URLErrorKind.MALFORMED_ESCAPE
        else:
            raise CatastrophicFailure("while unescaping %s, expected an error, got %s", repr(data), repr(res))

    # not enough characters after %
    check_fail(b"%", b"%")
    check_fail(b"%a", b"%a")
    check_fail(b"%1", b"%1")
    check_fail(b"123%45%6", b"%6")
    # invalid hex digits
    check_fail(b"%zzzzz", b"%zz")

def test_escape_unescape_identity() -> None:
    data = bytes(b for b in range(0, 256) if b != 0x25)
    for mode in Encoding:
        assert unescape(escape(data, mode), mode) == data
