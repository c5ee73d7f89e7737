# =============================================================================
# Unit Tests — Token-Window Chunker
# =============================================================================
#
# Tests the token-window splitting without external services (tiktoken
# runs locally).
# =============================================================================

from app.services.chunker import split_text_windows
from app.services.parser import ParsedDocument, ParsedElement


def _make_parsed_doc(
    texts: list[str],
    page_numbers: list[int] | None = None,
) -> ParsedDocument:
    """Helper to build a ParsedDocument from simple text lists."""
    pages = page_numbers or [1] * len(texts)
    elements = [
        ParsedElement(text=text, page_number=page, element_type="text")
        for text, page in zip(texts, pages, strict=True)
    ]
    return ParsedDocument(
        elements=elements,
        page_count=max(pages) if pages else 0,
        filename="test.pdf",
    )


class TestSplitTextWindows:
    """Tests for split_text_windows()."""

    def test_empty_text_returns_no_windows(self):
        assert split_text_windows("", chunk_size=64, chunk_overlap=10) == []

    def test_whitespace_text_returns_no_windows(self):
        assert split_text_windows("  \n\n ", chunk_size=64, chunk_overlap=10) == []

    def test_short_text_single_window(self):
        windows = split_text_windows("This is a short sentence.", chunk_size=64, chunk_overlap=10)
        assert len(windows) == 1
        assert windows[0].content == "This is a short sentence."
        assert windows[0].index == 0

    def test_window_indices_are_sequential(self):
        windows = split_text_windows("word " * 200, chunk_size=32, chunk_overlap=5)
        assert len(windows) > 1
        for i, window in enumerate(windows):
            assert window.index == i

    def test_windows_respect_size(self):
        windows = split_text_windows("word " * 500, chunk_size=50, chunk_overlap=10)
        for window in windows:
            assert window.token_count <= 50

    def test_overlap_repeats_text(self):
        text = " ".join(f"item{i}" for i in range(300))
        windows = split_text_windows(text, chunk_size=40, chunk_overlap=20)
        assert len(windows) > 2
        # The tail of each window reappears at the head of the next
        tail = windows[0].content.split()[-2]
        assert tail in windows[1].content

    def test_overlap_larger_than_size_still_advances(self):
        windows = split_text_windows("word " * 50, chunk_size=10, chunk_overlap=20)
        assert len(windows) > 1


class TestParsedDocumentText:
    """Tests for ParsedDocument.to_text(), the text the extractor receives."""

    def test_page_markers_inserted(self):
        doc = _make_parsed_doc(["alpha", "beta", "gamma"], page_numbers=[1, 1, 2])
        assert doc.to_text() == "Page 1 of 2\n\nalpha\n\nbeta\n\nPage 2 of 2\n\ngamma"

    def test_without_page_markers(self):
        doc = _make_parsed_doc(["alpha", "beta"], page_numbers=[1, 2])
        assert doc.to_text(page_markers=False) == "alpha\n\nbeta"

    def test_elements_without_provenance_not_marked(self):
        doc = _make_parsed_doc(["alpha"], page_numbers=[0])
        assert doc.to_text() == "alpha"
