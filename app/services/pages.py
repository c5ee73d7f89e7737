# =============================================================================
# Page Segmenter — "Page N of M" Boundary Splitting
# =============================================================================
#
# Policy PDFs are stored as one flat text blob (page structure is lost at
# extraction time), but most policies print a "Page N of M" footer/header on
# every page. Those markers are the only page boundaries we have.
#
# ALGORITHM:
# 1. Find every "Page N of M" marker (case-insensitive)
# 2. No markers → the whole content is one chunk labelled "1"
# 3. Otherwise each chunk runs from one marker to the next (or to the end).
#    Text before the first marker is kept in the first chunk, so joining
#    all chunk texts reproduces the original content exactly.
#
# Labels are only as good as the source markers: a footer-style marker
# labels the text that precedes the NEXT marker, not its own page. The
# engine accepts this approximation.
# =============================================================================

from __future__ import annotations

import re

from app.models.domain import PageChunk

PAGE_MARKER_RE = re.compile(r"Page (\d+) of (\d+)", re.IGNORECASE)

DEFAULT_PAGE_LABEL = "1"


def segment_pages(content: str) -> list[PageChunk]:
    """
    Split document content into page chunks.

    Pure and cheap; called on every matcher cache miss instead of being
    stored.
    """
    markers = list(PAGE_MARKER_RE.finditer(content))

    if not markers:
        return [PageChunk(page_label=DEFAULT_PAGE_LABEL, text=content, offset=0)]

    chunks: list[PageChunk] = []
    for i, marker in enumerate(markers):
        start = 0 if i == 0 else marker.start()
        end = markers[i + 1].start() if i + 1 < len(markers) else len(content)
        chunks.append(PageChunk(
            page_label=f"{marker.group(1)} of {marker.group(2)}",
            text=content[start:end],
            offset=start,
        ))

    return chunks
