import pytest

from mjml_toolkit.core import tree
from mjml_toolkit.core.generators.mjml_builder import generate_mjml
from mjml_toolkit.core.importers.mjml_importer import (
    MalformedMarkupError,
    MissingBodyError,
    MjmlParseError,
    parse_mjml,
)
from mjml_toolkit.core.models import EditorNode, FontDefinition, HeadSettings


def test_parse_text_scenario(schema):
    parsed = parse_mjml('<mj-body><mj-text color="#333">Hi</mj-text></mj-body>', schema)
    doc = parsed.document
    assert doc.type == "mj-body"
    assert len(doc.children) == 1
    text = doc.children[0]
    assert text.type == "mj-text"
    assert text.attributes == {"color": "#333"}
    assert text.content == "Hi"
    assert text.children == ()


def test_unbalanced_markup_is_malformed(schema):
    with pytest.raises(MalformedMarkupError) as excinfo:
        parse_mjml("<mj-body><mj-text>", schema)
    assert excinfo.value.detail
    assert isinstance(excinfo.value, MjmlParseError)


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "<mjml><mj-body></mjml>",
    "not markup at all",
    "<mjml><mj-body><mj-text>\ud800</mj-text></mj-body></mjml>",
])
def test_unparsable_inputs(schema, text):
    with pytest.raises(MalformedMarkupError):
        parse_mjml(text, schema)


def test_missing_body(schema):
    with pytest.raises(MissingBodyError):
        parse_mjml("<mjml><mj-head><mj-title>x</mj-title></mj-head></mjml>", schema)


def test_tolerates_hand_written_variants(schema):
    text = """
    <MJML>
      <mj-body   width = "600px" >
        <mj-section><mj-column>
          <mj-spacer height="10px"></mj-spacer>
          <mj-text/>
          <mj-text
             align="center">
             Hello
          </mj-text>
        </mj-column></mj-section>
      </mj-body>
    </MJML>
    """
    doc = parse_mjml(text, schema).document
    column = doc.children[0].children[0]
    spacer, empty_text, text_node = column.children
    assert spacer.attributes == {"height": "10px"}
    assert spacer.content is None
    assert empty_text.content is None
    assert text_node.attributes == {"align": "center"}
    assert text_node.content == "Hello"


def test_raw_html_inside_ending_tags_is_kept_verbatim(schema):
    text = '<mj-body><mj-column><mj-text><p>One<br>two &nbsp; <b>three</b></p></mj-text></mj-column></mj-body>'
    doc = parse_mjml(text, schema).document
    assert doc.children[0].children[0].content == "<p>One<br>two &nbsp; <b>three</b></p>"


def test_greater_than_inside_quoted_attribute(schema):
    text = "<mj-body><mj-column><mj-text title=\"a>b\" css-class='c>d'><p>Hello</p></mj-text></mj-column></mj-body>"
    node = parse_mjml(text, schema).document.children[0].children[0]
    assert node.attributes == {"title": "a>b", "css-class": "c>d"}
    assert node.content == "<p>Hello</p>"


def test_cdata_terminator_inside_raw_content(schema):
    text = "<mj-body><mj-raw>a ]]> b</mj-raw></mj-body>"
    assert parse_mjml(text, schema).document.children[0].content == "a ]]> b"


def test_html_content_is_dedented(schema):
    text = "\n".join(
        [
            "<mj-body>",
            "  <mj-table>",
            "    <tr>",
            "      <td>x</td>",
            "    </tr>",
            "  </mj-table>",
            "</mj-body>",
        ]
    )
    table = parse_mjml(text, schema).document.children[0]
    assert table.content == "<tr>\n  <td>x</td>\n</tr>"


def test_attribute_order_preserved(schema):
    doc = parse_mjml('<mj-body><mj-button z="1" a="2" m="3">x</mj-button></mj-body>', schema).document
    assert list(doc.children[0].attributes) == ["z", "a", "m"]


def test_locked_attribute_becomes_flag(schema):
    doc = parse_mjml('<mj-body><mj-section data-locked="true"></mj-section></mj-body>', schema).document
    section = doc.children[0]
    assert section.locked
    assert "data-locked" not in section.attributes


def test_non_mj_elements_are_skipped_with_warning(schema):
    parsed = parse_mjml("<mj-body><div>ignored</div><mj-section></mj-section></mj-body>", schema)
    assert [c.type for c in parsed.document.children] == ["mj-section"]
    assert [w.code for w in parsed.warnings] == ["unsupported_element"]


def test_content_and_children_kept_and_flagged(schema):
    parsed = parse_mjml("<mj-body>stray<mj-section></mj-section></mj-body>", schema)
    assert parsed.document.content == "stray"
    assert len(parsed.document.children) == 1
    assert parsed.warnings[0].code == "content_and_children"
    assert parsed.warnings[0].node_id == parsed.document.id


def test_every_node_gets_a_fresh_id(schema):
    text = "<mj-body><mj-section><mj-column></mj-column></mj-section></mj-body>"
    first = parse_mjml(text, schema).document
    second = parse_mjml(text, schema).document
    ids = tree.collect_ids(first) + tree.collect_ids(second)
    assert len(ids) == len(set(ids)) == 6


def test_body_found_inside_envelope(schema):
    text = "<mjml><mj-head></mj-head><mj-body><mj-section/></mj-body></mjml>"
    assert parse_mjml(text, schema).document.children[0].type == "mj-section"


def test_head_settings_are_parsed(schema):
    text = """<mjml>
      <mj-head>
        <mj-title>My title</mj-title>
        <mj-preview> Preview </mj-preview>
        <mj-font name="Roboto" href="https://fonts.example/roboto.css" />
        <mj-font name="NoHref" />
        <mj-breakpoint width="480px" />
        <mj-style>
          .link-nostyle { color: inherit; text-decoration: none; }
          .x > a { color: red; }
        </mj-style>
      </mj-head>
      <mj-body></mj-body>
    </mjml>"""
    head = parse_mjml(text, schema).head_settings
    assert head.title == "My title"
    assert head.preview == "Preview"
    assert head.fonts == (FontDefinition("Roboto", "https://fonts.example/roboto.css"),)
    assert head.breakpoint == "480px"
    assert head.styles == ".x > a { color: red; }"


def test_round_trip_of_sample_document(schema, sample_document):
    head = HeadSettings(title="T", preview="P", styles="a { b: c; }\n.d { e: f; }", breakpoint="320px")
    parsed = parse_mjml(generate_mjml(sample_document, head, schema), schema)
    assert parsed.document == sample_document
    assert parsed.head_settings == head


def test_round_trip_special_characters(schema):
    doc = EditorNode(
        type="mj-body",
        children=(
            EditorNode(
                type="mj-section",
                attributes={"css-class": 'a "quoted" <value> & more'},
                locked=True,
                children=(
                    EditorNode(
                        type="mj-column",
                        children=(
                            EditorNode(type="mj-text", content="<p>Tom &amp; Jerry</p>"),
                            EditorNode(
                                type="mj-text",
                                attributes={"css-class": "a\nb", "title": "x\ty", "alt": "line\r\nbreak"},
                                content="Hi",
                            ),
                            EditorNode(type="mj-raw", content="<!-- comment -->\n<div>x</div>"),
                        ),
                    ),
                ),
            ),
        ),
    )
    assert parse_mjml(generate_mjml(doc, None, schema), schema).document == doc
