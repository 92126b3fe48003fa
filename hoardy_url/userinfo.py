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

"""The `userinfo@` part of URL authority."""

import dataclasses as _dc

from kisstdlib.exceptions import *

from .escape import *

@_dc.dataclass(frozen=True)
class Userinfo:
    """Username and, optionally, password of a URL.

       Use `user` and `user_password` to make these. `password_set`
       distinguishes "no password" from an empty one.
    """
    username : bytes
    password : bytes = b""
    password_set : bool = False

    def get_password(self) -> tuple[bytes, bool]:
        if self.password_set:
            return self.password, True
        return b"", False

    def encode(self) -> bytes:
        """Encode into `username[:password]` form."""
        res = escape(self.username, Encoding.USERINFO)
        if self.password_set:
            res += b":" + escape(self.password, Encoding.USERINFO)
        return res

    def __bytes__(self) -> bytes:
        return self.encode()

    def __str__(self) -> str:
        return self.encode().decode("ascii")

def user(username : bytes) -> Userinfo:
    return Userinfo(username)

def user_password(username : bytes, password : bytes) -> Userinfo:
    return Userinfo(username, password, True)

def parse_authority(authority : bytes) -> tuple[Userinfo | None, bytes]:
    """Split URL authority into `Userinfo` and host.

       The last `@` is the separator, so unescaped `@`s in usernames and
       passwords work. Raises `EscapeError`.
    """
    userinfo, has_user, host = authority.rpartition(b"@")
    if not has_user:
        return None, host

    username, has_password, password = userinfo.partition(b":")
    if not has_password:
        return user(unescape(username, Encoding.USERINFO)), host
    return user_password(unescape(username, Encoding.USERINFO),
                         unescape(password, Encoding.USERINFO)), host

def test_parse_authority() -> None:
    def check(authority : bytes, ui : Userinfo | None, host : bytes) -> None:
        res = parse_authority(authority)
        if res != (ui, host):
            raise CatastrophicFailure("while parsing %s, expected %s, got %s", repr(authority), repr((ui, host)), repr(res))

    check(b"example.org", None, b"example.org")
    check(b"example.org:8080", None, b"example.org:8080")
    check(b"", None, b"")
    check(b"@example.org", user(b""), b"example.org")
    check(b"webmaster@example.org", user(b"webmaster"), b"example.org")
    check(b"john%20doe@example.org", user(b"john doe"), b"example.org")
    check(b"user:password@example.org", user_password(b"user", b"password"), b"example.org")
    check(b"user:@example.org", user_password(b"user", b""), b"example.org")
    check(b"j@ne:password@example.org", user_password(b"j@ne", b"password"), b"example.org")
    check(b"jane:p@ssword@example.org", user_password(b"jane", b"p@ssword"), b"example.org")
    check(b"jane:pass:word@example.org", user_password(b"jane", b"pass:word"), b"example.org")
    check(b"%3Fam:pa%3Fsword@example.org", user_password(b"?am", b"pa?sword"), b"example.org")

    try:
        parse_authority(b"us%zzer@example.org")
    except EscapeError as exc:
        assert exc.fragment == b"%zz"
    else:
        assert False

def test_Userinfo() -> None:
    assert user(b"user").get_password() == (b"", False)
    assert user_password(b"user", b"").get_password() == (b"", True)
    assert user(b"user") != user_password(b"user", b"")

    assert user(b"user").encode() == b"user"
    assert user_password(b"user", b"").encode() == b"user:"
    assert user_password(b"user", b"password").encode() == b"user:password"
    assert user_password(b"j@ne", b"p/ss?w:rd").encode() == b"j%40ne:p%2Fss%3Fw%3Ard"
    assert bytes(user(b"john doe")) == b"john%20doe"
    assert str(user_password(b"foo:bar", b"$&+,;=")) == "foo%3Abar:$&+,;="
