"""
Citation Formatter
==================

Pure, deterministic rendering of source metadata as MLA, APA or Chicago
citations. No network, cache, clock or locale dependency: identical input
always yields identical output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from claimcheck.domain.entities import (
    CitationFormat,
    CitationStyle,
    CitedSource,
    RankedSource,
    SourceMetadata,
)
from claimcheck.domain.services.source_ranker import parse_published

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

SHORT_TITLE_CHARS = 30


@dataclass(frozen=True, slots=True)
class Citation:
    """Inline and bibliography renderings of one source."""

    inline: str
    bibliography: str


def _long_date(value: str | None) -> str | None:
    parsed = parse_published(value)
    if parsed is None:
        return None
    return f"{_MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"


def _year(value: str | None) -> str | None:
    parsed = parse_published(value)
    return str(parsed.year) if parsed else None


def _last_name(author: str) -> str:
    return author.split()[-1]


def _short_title(title: str) -> str:
    if len(title) > SHORT_TITLE_CHARS:
        return f"{title[:SHORT_TITLE_CHARS]}..."
    return title


def _join(parts: list[str]) -> str:
    return re.sub(r"\s+", " ", " ".join(p for p in parts if p)).strip()


def _clean(meta: SourceMetadata) -> tuple[str, str, str, str]:
    author = (meta.author or "").strip()
    title = (meta.title or "").strip().rstrip(".") or meta.domain or meta.url
    publisher = (meta.publisher or meta.domain or "").strip()
    return author, title, publisher, meta.url.strip()


def _mla(meta: SourceMetadata) -> Citation:
    author, title, publisher, url = _clean(meta)
    date = _long_date(meta.date)

    inline = f"({_last_name(author)})" if author else f'("{title}")'
    bibliography = _join(
        [
            f"{author}." if author else "",
            f'"{title}."',
            f"*{publisher}*," if publisher else "",
            f"{date}," if date else "",
            f"{url}.",
        ]
    )
    return Citation(inline=inline, bibliography=bibliography)


def _apa(meta: SourceMetadata) -> Citation:
    author, title, publisher, url = _clean(meta)
    year = _year(meta.date) or "n.d."

    inline = (
        f"({_last_name(author)}, {year})" if author else f'("{_short_title(title)}", {year})'
    )
    bibliography = _join(
        [
            f"{author}." if author else "",
            f"({year}).",
            f"{title}.",
            f"*{publisher}*." if publisher else "",
            url,
        ]
    )
    return Citation(inline=inline, bibliography=bibliography)


def _chicago(meta: SourceMetadata) -> Citation:
    author, title, publisher, url = _clean(meta)
    date = _long_date(meta.date)
    year = _year(meta.date)

    if author:
        inline = f"({_last_name(author)}, {year})" if year else f"({_last_name(author)})"
    else:
        inline = f'("{_short_title(title)}")'
    bibliography = _join(
        [
            f"{author}." if author else "",
            f'"{title}."',
            f"{publisher}." if publisher else "",
            f"{date}." if date else "",
            f"{url}.",
        ]
    )
    return Citation(inline=inline, bibliography=bibliography)


_FORMATTERS = {
    CitationStyle.MLA: _mla,
    CitationStyle.APA: _apa,
    CitationStyle.CHICAGO: _chicago,
}


def render_citation(source: SourceMetadata, style: CitationStyle) -> Citation:
    """Render both citation forms for ``source``."""
    return _FORMATTERS[CitationStyle(style)](source)


def format_citation(source: SourceMetadata, style: CitationStyle, fmt: CitationFormat) -> str:
    """
    Render a single citation string.

    Args:
        source: Bibliographic metadata.
        style: mla, apa or chicago.
        fmt: inline or bibliography.
    """
    fmt = CitationFormat(fmt)
    if fmt is CitationFormat.BOTH:
        raise ValueError("format_citation renders one form; use render_citation for both")
    citation = render_citation(source, style)
    return citation.inline if fmt is CitationFormat.INLINE else citation.bibliography


def metadata_for(source: RankedSource) -> SourceMetadata:
    """Bibliographic metadata available for a search result."""
    return SourceMetadata(
        title=source.title,
        url=source.url,
        publisher=source.domain or None,
        date=source.date_published,
        domain=source.domain or None,
    )


def cite_source(source: RankedSource, style: CitationStyle) -> CitedSource:
    """Attach inline and bibliography citations to a ranked source."""
    citation = render_citation(metadata_for(source), style)
    return CitedSource(
        **source.model_dump(),
        citation_inline=citation.inline,
        citation_bibliography=citation.bibliography,
    )
