from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class FilePrefix(str, Enum):
    HERE = "."
    PARENT = ".."
    ABSOLUTE = ""
    HOME = "~"


@dataclass(frozen=True, slots=True)
class RemoteImport:
    scheme: str  # "http" | "https"
    authority: str
    path: tuple[str, ...] = ()
    query: str | None = None

    def url(self) -> str:
        path = "".join("/" + part for part in self.path)
        query = "" if self.query is None else "?" + self.query
        return f"{self.scheme}://{self.authority}{path}{query}"


@dataclass(frozen=True, slots=True)
class LocalImport:
    prefix: FilePrefix
    components: tuple[str, ...]

    def __str__(self) -> str:
        return self.prefix.value + "".join("/" + c for c in self.components)


@dataclass(frozen=True, slots=True)
class EnvImport:
    name: str

    def __str__(self) -> str:
        return f"env:{self.name}"


@dataclass(frozen=True, slots=True)
class MissingImport:
    def __str__(self) -> str:
        return "missing"


ImportTarget = RemoteImport | LocalImport | EnvImport | MissingImport


_URL_RE = re.compile(r"(https?)://([^/?]*)((?:/[^/?]*)*)(?:\?(.*))?")
_LOCAL_RE = re.compile(r"(\.\.|\.|~)?((?:/[^/]+)+)")
_ENV_RE = re.compile(r"env:([A-Za-z_][A-Za-z0-9_]*)")


def classify_import(lexeme: str) -> ImportTarget:
    """Build the import target for the text of an `IMPORT` token.

    Raises ValueError for text that is not an import; the lexer only emits
    `IMPORT` tokens for text matching one of the forms below.
    """
    if lexeme == "missing":
        return MissingImport()

    m = _ENV_RE.fullmatch(lexeme)
    if m:
        return EnvImport(name=m.group(1))

    m = _URL_RE.fullmatch(lexeme)
    if m:
        scheme, authority, path, query = m.groups()
        parts = tuple(path.split("/")[1:]) if path else ()
        return RemoteImport(scheme=scheme, authority=authority, path=parts, query=query)

    m = _LOCAL_RE.fullmatch(lexeme)
    if m:
        prefix = {".": FilePrefix.HERE, "..": FilePrefix.PARENT, "~": FilePrefix.HOME}.get(
            m.group(1) or "", FilePrefix.ABSOLUTE
        )
        return LocalImport(prefix=prefix, components=tuple(m.group(2).split("/")[1:]))

    raise ValueError(f"not an import: {lexeme!r}")


def import_href(target: ImportTarget) -> str | None:
    """Link target for an import, or None when it should render as plain text.

    Remote imports link to the URL itself (headers are never part of the
    link). Relative local imports link to the generated page of the imported
    file, which sits at the same relative location with `.html` appended.
    """
    if isinstance(target, RemoteImport):
        return target.url()
    if isinstance(target, LocalImport) and target.prefix in (FilePrefix.HERE, FilePrefix.PARENT):
        return str(target) + ".html"
    return None
