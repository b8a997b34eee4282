import pytest

from mjml_toolkit.core.importers import html_importer
from mjml_toolkit.core.importers.html_importer import import_html
from mjml_toolkit.core.importers.mjml_importer import MalformedMarkupError


HTML = (
    "<html><head><title> Hi there </title><style>p { color: red; }</style></head>"
    "<body>"
    "<h1>Welcome</h1>"
    "<p>Hello <b>World</b>!</p>"
    '<img src="a.png" alt="A">'
    '<a href="https://example.com">Click</a>'
    "<hr>"
    '<div><p>One</p><script>bad()</script><img src="b.png"></div>'
    "</body></html>"
)


def _leaves(section):
    assert section.type == "mj-section"
    (column,) = section.children
    assert column.type == "mj-column"
    return column.children


def test_each_top_level_block_becomes_a_section(schema):
    parsed = import_html(HTML, schema)
    doc = parsed.document
    assert doc.type == "mj-body"
    assert doc.attributes == {"background-color": "#f4f4f4", "width": "600px"}
    assert len(doc.children) == 6

    heading, paragraph, image, link, rule, container = (_leaves(s) for s in doc.children)
    assert [(n.type, n.content) for n in heading] == [("mj-text", "Welcome")]
    assert paragraph[0].content == "Hello <b>World</b>!"
    assert image[0].type == "mj-image"
    assert image[0].attributes == {"src": "a.png", "alt": "A"}
    assert link[0].type == "mj-button"
    assert link[0].attributes == {"href": "https://example.com"}
    assert link[0].content == "Click"
    assert rule[0].type == "mj-divider"
    assert [n.type for n in container] == ["mj-text", "mj-image"]


def test_title_and_conversion_warning(schema):
    parsed = import_html(HTML, schema)
    assert parsed.head_settings.title == "Hi there"
    assert [w.message for w in parsed.warnings] == [html_importer.CONVERSION_WARNING]


def test_text_only_body_becomes_single_text(schema):
    parsed = import_html("<html><body>Hello <b>world</b></body></html>", schema)
    (section,) = parsed.document.children
    assert section.attributes == {"background-color": "#ffffff"}
    (text,) = _leaves(section)
    assert text.type == "mj-text"
    assert text.content == "Hello <b>world</b>"


def test_link_without_text_gets_placeholder(schema):
    parsed = import_html("<html><body><div><a></a></div></body></html>", schema)
    (button,) = _leaves(parsed.document.children[0])
    assert button.attributes == {"href": "#"}
    assert button.content == "Link"


def test_scripts_alone_produce_empty_document(schema):
    parsed = import_html("<html><body><script>alert(1)</script></body></html>", schema)
    assert parsed.document.children == ()
    assert parsed.warnings[0].message == html_importer.EMPTY_WARNING


@pytest.mark.parametrize("html", ["", "   \n"])
def test_empty_input_rejected(schema, html):
    with pytest.raises(MalformedMarkupError):
        import_html(html, schema)


def test_result_passes_schema_validation(schema):
    parsed = import_html(HTML, schema)
    assert schema.validate_document(parsed.document) == []
