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

"""Merging of URL paths and removal of dot-segments, RFC 3986 sections 5.2.3 and 5.2.4."""

from kisstdlib.exceptions import *

def resolve_path(base : bytes, ref : bytes) -> bytes:
    """Apply `ref` path to `base` path and remove dot-segments from the result.

       The result always starts with a `/`, unless both inputs are empty.
    """
    if ref == b"":
        full = base
    elif not ref.startswith(b"/"):
        full = base[:base.rfind(b"/") + 1] + ref
    else:
        full = ref

    if full == b"":
        return b""

    parts = full.split(b"/")

    # remove dots and securely interpret double dots
    res : list[bytes] = []
    for e in parts:
        if e == b".":
            continue
        elif e == b"..":
            if len(res) > 0:
                res.pop()
            continue
        res.append(e)

    if parts[-1] in (b".", b".."):
        # keep the final slash
        res.append(b"")

    return b"/" + b"/".join(res).lstrip(b"/")

def test_resolve_path() -> None:
    def check(base : bytes, ref : bytes, value : bytes) -> None:
        res = resolve_path(base, ref)
        if res != value:
            raise CatastrophicFailure("while resolving %s against %s, expected %s, got %s", repr(ref), repr(base), repr(value), repr(res))

    check(b"a/b", b".", b"/a/")
    check(b"a/b", b"c", b"/a/c")
    check(b"a/b", b"..", b"/")
    check(b"a/", b"..", b"/")
    check(b"a/", b"../..", b"/")
    check(b"a/b/c", b"..", b"/a/")
    check(b"a/b/c", b"../d", b"/a/d")
    check(b"a/b/c", b".././d", b"/a/d")
    check(b"a/b", b"./..", b"/")
    check(b"a/./b", b".", b"/a/")
    check(b"a/../", b".", b"/")
    check(b"a/.././b", b"c", b"/c")

    # base is ignored for absolute references
    check(b"/a/b", b"/c/./d/../e", b"/c/e")
    # empty reference still normalizes the base
    check(b"/a/./b/../c", b"", b"/a/c")
    check(b"", b"", b"")
    check(b"", b"x", b"/x")
    check(b"nodir", b"x", b"/x")
    # triple dot is not special
    check(b"/a/b", b"...", b"/a/...")
    # leading slashes collapse
    check(b"///a", b"", b"/a")
