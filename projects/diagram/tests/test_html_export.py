"""Tests for the static HTML export."""

from diagram import GraphAssembler, graph_to_html
from diagram.main import ERROR_MESSAGE, error_diagram


def test_html_lists_tables_and_relationships(shop_assembler: GraphAssembler) -> None:
    """Test that every table and relationship label is rendered."""
    html = graph_to_html(shop_assembler.generate(), title="Shop")

    assert "<title>Shop</title>" in html
    for name in ("categories", "images", "products", "reviews"):
        assert f'id="table_{name}"' in html
    assert "images (morph many)" in html
    assert "Table not found in the database" in html
    assert '<script id="erd-data" type="application/json">' in html


def test_html_escapes_embedded_json(authors_assembler: GraphAssembler) -> None:
    """Test that data cannot close the embedding script element."""
    diagram = authors_assembler.generate()
    diagram["tables"][0]["model"] = "</script><b>"

    html = graph_to_html(diagram)

    assert "</script><b>" not in html
    assert "&lt;/script&gt;&lt;b&gt;" in html


def test_html_error_graph() -> None:
    """Test that the error message is shown for an error graph."""
    html = graph_to_html(error_diagram(RuntimeError("secret detail")))

    assert ERROR_MESSAGE in html
    assert "secret detail" not in html.split('<script id="erd-data"')[0]
