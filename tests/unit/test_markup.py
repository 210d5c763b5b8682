import pytest

from boards_mcp.connectors.markup import strip_html


@pytest.mark.parametrize("html,expected", [
    ("<p>Hello <b>world</b></p>", "Hello world"),
    ("plain", "plain"),
    ("", ""),
    (None, ""),
    ("<div>line<br/>break</div>", "linebreak"),
    ("unterminated <span", "unterminated "),
])
def test_strip_html(html, expected):
    assert strip_html(html) == expected
