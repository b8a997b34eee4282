import re

import pytest

from mjml_toolkit.core.utils import (
    escape_attr,
    escape_text,
    generate_node_id,
    is_unset,
    normalize_attribute_value,
)


class TestNodeIds:
    """Identifier generation."""

    def test_format(self):
        assert re.fullmatch(r"node_[0-9a-f]{32}", generate_node_id())

    def test_unique(self):
        ids = {generate_node_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestAttributeValues:
    """Normalisation and escaping of attribute values."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("20px", "20px"),
            (20, "20"),
            (20.0, "20"),
            (1.5, "1.5"),
            (True, "true"),
            (False, "false"),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_attribute_value(value) == expected

    def test_is_unset(self):
        assert is_unset(None)
        assert is_unset("")
        assert not is_unset("0")
        assert not is_unset(0)

    def test_escape_attr(self):
        assert escape_attr('a "b" <c> & d') == "a &quot;b&quot; &lt;c&gt; &amp; d"
        assert escape_attr(3) == "3"
        assert escape_attr("a\nb\r\tc") == "a&#10;b&#13;&#9;c"

    def test_escape_text_keeps_quotes(self):
        assert escape_text('"x" < y & z') == '"x" &lt; y &amp; z'
