"""Split URLs into their parts and put them back together after filtering.

Only what cleaning needs is touched: the scheme, userinfo, host and path are
carried through verbatim, so a URL without tracking fields comes back
byte-for-byte identical.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, quote, urlsplit

from pydantic import BaseModel, ConfigDict

from clearurls.errors import UrlDecompositionError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_REJECTED_SCHEMES = ("data:", "javascript:")
_DEFAULT_PORTS = {"http": 80, "https": 443}


class UrlParts(BaseModel):
    model_config = ConfigDict(frozen=True)

    scheme: str
    user: str | None = None
    password: str | None = None
    host: str
    port: int | None = None
    path: str = ""
    query: str | None = None
    fragment: str | None = None

    def fragment_is_query_like(self) -> bool:
        return self.fragment is not None and "=" in self.fragment


def _split_host_port(hostport: str) -> tuple[str, int | None]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            raise UrlDecompositionError("Unterminated IPv6 host")
        host, rest = hostport[: end + 1], hostport[end + 1 :]
        if rest and not rest.startswith(":"):
            raise UrlDecompositionError(f"Unexpected text after host: {rest!r}")
        port_text = rest[1:] if rest else ""
    else:
        host, _, port_text = hostport.partition(":")

    if not port_text:
        return host, None
    if not port_text.isdigit() or not port_text.isascii():
        raise UrlDecompositionError(f"Invalid port: {port_text!r}")
    port = int(port_text)
    if port > 65535:
        raise UrlDecompositionError(f"Port out of range: {port}")
    return host, port


def decompose_url(url: str) -> UrlParts:
    """Split an absolute URL.

    Raises UrlDecompositionError when the scheme or host is missing or the
    authority cannot be parsed.
    """
    try:
        split = urlsplit(url)
    except ValueError as e:
        raise UrlDecompositionError(f"Unparsable URL: {e}") from e

    if not split.scheme:
        raise UrlDecompositionError("URL has no scheme")
    # urlsplit lowercases the scheme; keep the caller's spelling.
    scheme = url[: len(split.scheme)]
    if scheme.lower() != split.scheme:
        scheme = split.scheme

    userinfo, at, hostport = split.netloc.rpartition("@")
    user = password = None
    if at:
        user, colon, pw = userinfo.partition(":")
        password = pw if colon else None

    host, port = _split_host_port(hostport)
    if not host:
        raise UrlDecompositionError("URL has no host")

    before_fragment, hash_sign, _ = url.partition("#")
    return UrlParts(
        scheme=scheme,
        user=user,
        password=password,
        host=host,
        port=port,
        path=split.path,
        query=split.query if "?" in before_fragment else None,
        fragment=split.fragment if hash_sign else None,
    )


def parse_fields(text: str | None) -> dict[str, str]:
    """Parse ``a=1&b=2`` into an ordered mapping; a repeated name keeps its
    first position and its last value.

    Escapes that are not valid UTF-8 decode to lone surrogates so that
    ``build_fields`` writes the original bytes back. Fields with an empty
    name are dropped.
    """
    if not text:
        return {}
    pairs = parse_qsl(text, keep_blank_values=True, errors="surrogateescape")
    return {name: value for name, value in pairs if name}


def build_fields(fields: dict[str, str]) -> str:
    # Everything but RFC 3986 unreserved characters is percent-encoded.
    return "&".join(
        f"{_encode_field(name)}={_encode_field(value)}" for name, value in fields.items()
    )


def _encode_field(text: str) -> str:
    return quote(text, safe="", errors="surrogateescape")


def recompose_url(
    parts: UrlParts,
    query_fields: dict[str, str],
    fragment_fields: dict[str, str],
) -> str:
    out = [parts.scheme, "://"]
    if parts.user is not None:
        out.append(parts.user)
        if parts.password is not None:
            out.append(":" + parts.password)
        out.append("@")
    out.append(parts.host)
    if parts.port is not None and _DEFAULT_PORTS.get(parts.scheme.lower()) != parts.port:
        out.append(f":{parts.port}")
    out.append(parts.path or "")
    if query_fields:
        out.append("?" + build_fields(query_fields))
    if fragment_fields:
        out.append("#" + build_fields(fragment_fields))
    elif parts.fragment is not None and not parts.fragment_is_query_like():
        out.append("#" + parts.fragment)
    return "".join(out)


def is_cleanable_url(url: str) -> bool:
    """Cheap gate in front of the cleaner.

    Accepts anything that looks like an absolute URL with a host and no
    whitespace or control characters; ``data:`` and ``javascript:`` URLs are
    always refused.
    """
    if not url:
        return False
    if url[:11].lower().startswith(_REJECTED_SCHEMES):
        return False
    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        return False
    if not _SCHEME_RE.match(url):
        return False
    try:
        decompose_url(url)
    except UrlDecompositionError:
        return False
    return True
