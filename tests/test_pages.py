# =============================================================================
# Unit Tests — Page Segmenter
# =============================================================================
#
# Pure string processing; no API keys, databases, or network calls needed.
# =============================================================================

from app.services.pages import DEFAULT_PAGE_LABEL, segment_pages


class TestSegmentPages:
    """Tests for segment_pages()."""

    def test_no_markers_single_chunk(self):
        chunks = segment_pages("A policy with no page markers at all.")
        assert len(chunks) == 1
        assert chunks[0].page_label == DEFAULT_PAGE_LABEL
        assert chunks[0].text == "A policy with no page markers at all."
        assert chunks[0].offset == 0

    def test_empty_content_single_chunk(self):
        chunks = segment_pages("")
        assert len(chunks) == 1
        assert chunks[0].text == ""

    def test_one_chunk_per_marker(self):
        content = "Page 1 of 3\nalpha\nPage 2 of 3\nbeta\nPage 3 of 3\ngamma"
        chunks = segment_pages(content)
        assert [c.page_label for c in chunks] == ["1 of 3", "2 of 3", "3 of 3"]
        assert "alpha" in chunks[0].text
        assert "beta" in chunks[1].text
        assert "gamma" in chunks[2].text

    def test_chunks_start_at_marker(self):
        content = "Page 1 of 2\nalpha\nPage 2 of 2\nbeta"
        chunks = segment_pages(content)
        assert chunks[1].text.startswith("Page 2 of 2")
        assert chunks[1].offset == content.index("Page 2 of 2")

    def test_preamble_kept_in_first_chunk(self):
        content = "POLICY HEADER\nPage 1 of 2\nalpha\nPage 2 of 2\nbeta"
        chunks = segment_pages(content)
        assert chunks[0].text.startswith("POLICY HEADER")
        assert chunks[0].page_label == "1 of 2"
        assert chunks[0].offset == 0

    def test_chunks_concatenate_to_original(self):
        content = (
            "Title\n\nPage 1 of 25\nsome text\n"
            "PAGE 2 OF 25\nmore text\npage 10 of 25\nend"
        )
        chunks = segment_pages(content)
        assert "".join(c.text for c in chunks) == content

    def test_case_insensitive(self):
        chunks = segment_pages("page 4 of 9 text PAGE 5 OF 9 text")
        assert [c.page_label for c in chunks] == ["4 of 9", "5 of 9"]

    def test_footer_style_markers(self):
        # Footer markers label the text before the next marker
        content = "intro text\nPage 1 of 2\nsecond page text\nPage 2 of 2"
        chunks = segment_pages(content)
        assert len(chunks) == 2
        assert "intro text" in chunks[0].text
        assert chunks[1].text == "Page 2 of 2"

    def test_offsets_index_into_content(self):
        content = "xx Page 1 of 2 aaa Page 2 of 2 bbb"
        for chunk in segment_pages(content):
            assert content[chunk.offset:chunk.offset + len(chunk.text)] == chunk.text
