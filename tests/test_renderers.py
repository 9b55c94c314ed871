import pytest

from orgsite.renderers import (
    ConversionError,
    intercept,
    is_intercepted,
    org_to_html,
)


def body_of(text):
    captured = {}

    def capture(body, info):
        captured["body"] = body
        captured["info"] = info
        return body

    with intercept(template=capture):
        org_to_html(text)
    return captured["body"], captured["info"]


def test_default_conversion_returns_full_document():
    html = org_to_html("#+TITLE: Hello & Bye\n\nWorld\n")
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Hello &amp; Bye</title>" in html
    assert "<p>World</p>" in html
    assert "#+TITLE" not in html


def test_keyword_lines_produce_no_body_output():
    body, info = body_of("#+TITLE: Hello\n#+AUTHOR: Ada\n\nWorld\n")
    assert body == "<p>World</p>\n"
    assert info["title"] == "Hello"
    assert info["keywords"] == {"title": "Hello", "author": "Ada"}


def test_headlines_map_to_heading_levels():
    body, _ = body_of("* Intro\nText\n** Details\n")
    assert body == "<h1>Intro</h1>\n<p>Text</p>\n<h2>Details</h2>\n"


def test_deep_headlines_are_capped():
    body, _ = body_of("******** Very deep\n")
    assert body == "<h6>Very deep</h6>\n"


def test_org_links():
    body, _ = body_of("See [[https://example.com][Example]] and [[https://a.org]].\n")
    assert '<a href="https://example.com">Example</a>' in body
    assert '<a href="https://a.org">https://a.org</a>' in body


def test_verbatim_and_code_spans():
    body, _ = body_of("Run =make= or ~make test~ now\n")
    assert body == "<p>Run <code>make</code> or <code>make test</code> now</p>\n"


def test_equals_inside_words_is_not_verbatim():
    body, _ = body_of("a=b and c=d\n")
    assert "<code>" not in body


def test_emphasis_markers():
    body, _ = body_of("Some *bold* and /it/ text\n")
    assert body == "<p>Some <strong>bold</strong> and <em>it</em> text</p>\n"


def test_strike_and_underline():
    body, _ = body_of("+gone+ and _kept_\n")
    assert body == '<p><del>gone</del> and <span class="underline">kept</span></p>\n'


def test_slashes_inside_words_are_not_emphasis():
    body, _ = body_of("either/or and/or\n")
    assert "<em>" not in body


def test_comment_lines_are_dropped():
    body, _ = body_of("# a comment\nText\n")
    assert body == "<p>Text</p>\n"


def test_org_table_with_header_rule():
    body, _ = body_of("| Name | Qty |\n|------+-----|\n| tea  | *2* |\n")
    assert body == (
        "<table>\n"
        "<thead>\n<tr>\n  <th>Name</th>\n  <th>Qty</th>\n</tr>\n</thead>\n"
        "<tbody>\n<tr>\n  <td>tea</td>\n  <td><strong>2</strong></td>\n</tr>\n</tbody>\n"
        "</table>\n"
    )


def test_org_table_without_rule_has_no_header():
    body, _ = body_of("| a | b |\n| c | d |\n\nAfter\n")
    assert "<thead>" not in body
    assert body.count("<tr>") == 2
    assert body.endswith("<p>After</p>\n")


def test_example_block_is_preformatted():
    body, _ = body_of("#+BEGIN_EXAMPLE\n*not bold* <x>\n#+END_EXAMPLE\n")
    assert body == "<pre><code>*not bold* &lt;x&gt;\n</code></pre>\n"


def test_unterminated_example_block_raises():
    with pytest.raises(ConversionError) as excinfo:
        org_to_html("#+begin_example\nopen\n")
    assert excinfo.value.line == 1


def test_src_block_is_highlighted():
    body, _ = body_of("#+BEGIN_SRC python\nprint(1)\n#+END_SRC\n")
    assert 'class="highlight"' in body
    assert "print" in body


def test_src_block_with_unknown_language():
    body, _ = body_of("#+begin_src nosuchlang\na < b\n#+end_src\n")
    assert body == '<pre><code class="language-nosuchlang">a &lt; b\n</code></pre>\n'


def test_quote_block():
    body, _ = body_of("#+BEGIN_QUOTE\nWise words\n#+END_QUOTE\n")
    assert body == "<blockquote>\n<p>Wise words</p>\n</blockquote>\n"


def test_unterminated_src_block_raises():
    with pytest.raises(ConversionError) as excinfo:
        org_to_html("Intro\n\n#+BEGIN_SRC python\nprint(1)\n")
    assert excinfo.value.line == 3
    assert "unterminated" in str(excinfo.value)


def test_intercept_restores_defaults_after_success():
    seen = []
    with intercept(template=lambda body, info: body, keyword=lambda k, v: seen.append(k)):
        assert is_intercepted()
        assert org_to_html("#+TITLE: T\n\nx\n") == "<p>x</p>\n"
    assert seen == ["TITLE"]
    assert not is_intercepted()
    assert org_to_html("x\n").startswith("<!DOCTYPE html>")


def test_intercept_restores_defaults_after_failure():
    with pytest.raises(ConversionError):
        with intercept(template=lambda body, info: body, keyword=lambda k, v: None):
            org_to_html("#+BEGIN_SRC\nnever closed\n")
    assert not is_intercepted()
    assert org_to_html("#+TITLE: T\n\nx\n").startswith("<!DOCTYPE html>")


def test_nested_intercept_restores_outer_override():
    def outer(body, info):
        return "outer"

    def inner(body, info):
        return "inner"

    with intercept(template=outer):
        with intercept(template=inner):
            assert org_to_html("x\n") == "inner"
        assert org_to_html("x\n") == "outer"
    assert not is_intercepted()
