from __future__ import annotations

import re
from typing import List

from domain.models import TocHeading

_HEADING_RE = re.compile(r"^(#{2,3})\s+(.+)$", re.MULTILINE)


def slugify(text: str) -> str:
    slug = str(text).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = slug.replace("&", "-and-")
    slug = re.sub(r"[^\w\-]+", "", slug, flags=re.ASCII)
    return re.sub(r"--+", "-", slug)


def extract_headings(content: str) -> List[TocHeading]:
    headings: List[TocHeading] = []
    for match in _HEADING_RE.finditer(content):
        text = match.group(2).strip()
        if not text:
            continue
        headings.append(TocHeading(level=len(match.group(1)), text=text, slug=slugify(text)))
    return headings
