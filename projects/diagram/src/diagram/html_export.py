"""HTML export functionality for ER diagrams."""

import json
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from diagram.schema_types import DiagramSchema

TEMPLATE_DIR = Path(__file__).parent / "templates"

_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
)


def graph_to_html(diagram: DiagramSchema, title: str = "ER Diagram") -> str:
    """Create a static HTML overview of the tables and relationships."""
    template = _JINJA_ENV.get_template("diagram.html")
    tables_by_id = {table["id"]: table["name"] for table in diagram["tables"]}

    return template.render(
        title=title,
        tables=diagram["tables"],
        relationships=diagram["relationships"],
        metadata=diagram["metadata"],
        tables_by_id=tables_by_id,
        # Keep embedded JSON from closing the script element
        diagram_json=json.dumps(diagram, indent=2).replace("</", "<\\/"),
    )
