"""Tests for building page models from Document AI pages."""

from google.cloud import documentai

from statement_pipeline.services.document.page_builder import (
    build_page,
    build_text_blocks,
    layout_box,
    layout_text,
)


def _segment(start, end):
    return documentai.Document.TextAnchor.TextSegment(start_index=start, end_index=end)


class TestLayoutText:
    """Tests for text anchor resolution."""

    def test_concatenates_segments_in_order(self):
        """Multiple segments of one unit should be joined in order."""
        layout = documentai.Document.Page.Layout(
            text_anchor=documentai.Document.TextAnchor(text_segments=[_segment(0, 5), _segment(11, 16)])
        )

        assert layout_text(layout, "Total fees, Bank balance") == "Total Bank"

    def test_no_segments_is_empty(self):
        """A layout without segments should resolve to an empty string."""
        assert layout_text(documentai.Document.Page.Layout(), "anything") == ""


class TestLayoutBox:
    """Tests for bounding box extraction."""

    def test_uses_first_and_third_vertices(self):
        """x1/y1 come from vertex 0 and x2/y2 from vertex 2."""
        layout = documentai.Document.Page.Layout(
            bounding_poly=documentai.BoundingPoly(
                normalized_vertices=[
                    documentai.NormalizedVertex(x=0.25, y=0.5),
                    documentai.NormalizedVertex(x=0.75, y=0.5),
                    documentai.NormalizedVertex(x=0.75, y=0.625),
                    documentai.NormalizedVertex(x=0.25, y=0.625),
                ]
            )
        )

        box = layout_box(layout)

        assert (box.x1, box.y1, box.x2, box.y2) == (0.25, 0.5, 0.75, 0.625)
        assert box.center_y == 0.5625

    def test_incomplete_polygon_returns_none(self):
        """Fewer than four vertices cannot describe a box."""
        layout = documentai.Document.Page.Layout(
            bounding_poly=documentai.BoundingPoly(
                normalized_vertices=[documentai.NormalizedVertex(x=0.1, y=0.1)]
            )
        )

        assert layout_box(layout) is None


class TestBuildPage:
    """Tests for full page model construction."""

    def test_prefers_paragraphs(self, document_factory):
        """Paragraph units become text blocks in reading order."""
        document = document_factory([[(0.1, ["Bank of America"]), (0.2, ["Date", "Amount"])]])

        page = build_page(1, document.pages[0], document.text)

        assert [block.text for block in page.text_blocks] == ["Bank of America", "Date", "Amount"]
        assert page.page_number == 1
        assert "Bank of America" in page.full_text

    def test_falls_back_to_tokens(self, document_factory):
        """Tokens are used when a page has no paragraphs."""
        document = document_factory([[(0.1, ["Chase", "Statement"])]], use_tokens=True)

        blocks = build_text_blocks(document.pages[0], document.text)

        assert [block.text for block in blocks] == ["Chase", "Statement"]

    def test_skips_units_without_box(self):
        """Units lacking a complete polygon are dropped."""
        text = "kept dropped"
        page = documentai.Document.Page(
            paragraphs=[
                documentai.Document.Page.Paragraph(
                    layout=documentai.Document.Page.Layout(
                        text_anchor=documentai.Document.TextAnchor(text_segments=[_segment(0, 4)]),
                        bounding_poly=documentai.BoundingPoly(
                            normalized_vertices=[
                                documentai.NormalizedVertex(x=0.0, y=0.0),
                                documentai.NormalizedVertex(x=0.5, y=0.0),
                                documentai.NormalizedVertex(x=0.5, y=0.5),
                                documentai.NormalizedVertex(x=0.0, y=0.5),
                            ]
                        ),
                    )
                ),
                documentai.Document.Page.Paragraph(
                    layout=documentai.Document.Page.Layout(
                        text_anchor=documentai.Document.TextAnchor(text_segments=[_segment(5, 12)]),
                    )
                ),
            ]
        )

        blocks = build_text_blocks(page, text)

        assert [block.text for block in blocks] == ["kept"]

    def test_table_descriptors(self, document_factory):
        """Header cells come from the first header row; row count from body rows."""
        document = document_factory(
            [[(0.1, ["Deposits"])]],
            tables={1: [["Date", "Description", "Amount"]]},
        )

        page = build_page(1, document.pages[0], document.text)

        assert len(page.tables) == 1
        assert page.tables[0].header_cells == ["Date", "Description", "Amount"]
        assert page.tables[0].row_count == 1
        assert page.tables[0].table_index == 0
