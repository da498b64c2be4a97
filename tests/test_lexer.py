import pytest
from hypothesis import given
from hypothesis import strategies as st

from antigen.lexer import Group, LexError, Token, TokenKind, render, tokenize


def texts(trees):
    return [tree.text for tree in trees]


def test_path_renders_with_spaced_separator():
    assert render(tokenize("clippy::no_panic_in_drop")) == "clippy :: no_panic_in_drop"


def test_call_renders_with_space_before_parens():
    assert render(tokenize("my_test_fn()")) == "my_test_fn ()"


def test_generic_type_renders_spaced():
    assert render(tokenize("Container<T>")) == "Container < T >"


def test_brace_groups_render_with_inner_spaces():
    assert render(tokenize("{a}")) == "{ a }"
    assert render(tokenize("{}")) == "{}"


def test_string_literal_is_unescaped():
    source = r'"item: enum, has_method(\"meet\", \"(Self, Self) -> Self\")"'
    (token,) = tokenize(source)
    assert token.kind is TokenKind.STRING
    assert token.value == 'item: enum, has_method("meet", "(Self, Self) -> Self")'
    assert token.text == source


def test_raw_string_keeps_content_verbatim():
    (token,) = tokenize('r#"a "quoted" b"#')
    assert token.kind is TokenKind.STRING
    assert token.value == 'a "quoted" b'


def test_unicode_escape():
    (token,) = tokenize('"\\u{41}"')
    assert token.value == "A"


def test_line_continuation_skips_leading_whitespace():
    (token,) = tokenize('"ab\\\n     cd"')
    assert token.value == "abcd"


def test_byte_string_and_byte_char():
    byte_string, byte_char = tokenize("b\"ab\" b'x'")
    assert byte_string.kind is TokenKind.BYTE_STRING
    assert byte_string.value == "ab"
    assert byte_char.kind is TokenKind.BYTE
    assert byte_char.value == "x"


def test_comments_are_dropped():
    source = "a // line comment\n/* outer /* inner */ still */ /// doc\nb"
    assert texts(tokenize(source)) == ["a", "b"]


def test_lifetimes_and_chars_are_distinguished():
    trees = tokenize("'a 'b' '\\n'")
    assert [t.kind for t in trees] == [TokenKind.LIFETIME, TokenKind.CHAR, TokenKind.CHAR]
    assert [t.value for t in trees] == [None, "b", "\n"]


def test_raw_identifier():
    (token,) = tokenize("r#type")
    assert token.kind is TokenKind.IDENT
    assert token.text == "r#type"


def test_numbers_and_ranges():
    trees = tokenize("1..2 3.5f32 0xffu8 1e10")
    assert texts(trees) == ["1", ".", ".", "2", "3.5f32", "0xffu8", "1e10"]
    assert trees[4].kind is TokenKind.NUMBER


def test_joint_punctuation():
    trees = tokenize("a::b ;// trailing")
    assert trees[1].joint is True
    assert trees[2].joint is False
    assert trees[-1].is_punct(";")
    assert trees[-1].joint is False


def test_nested_groups():
    (name, call) = tokenize("f(a, [b])")
    assert isinstance(name, Token)
    assert isinstance(call, Group)
    assert call.delimiter == "("
    assert call.closing == ")"
    inner = call.trees[-1]
    assert isinstance(inner, Group)
    assert inner.delimiter == "["
    assert texts(inner.trees) == ["b"]


def test_line_numbers_are_tracked():
    trees = tokenize("a\n\nb")
    assert trees[0].line == 1
    assert trees[1].line == 3


@pytest.mark.parametrize(
    "source",
    ["(]", "(", ")", '"abc', "/* never closed", '"\\q"', '"\\xff"', "'", "§"],
)
def test_malformed_source_raises(source):
    with pytest.raises(LexError):
        tokenize(source)


def test_lex_error_carries_line():
    with pytest.raises(LexError) as info:
        tokenize("a\n(")
    assert info.value.line == 2


_segment = st.from_regex(r"[a-z][a-z_0-9]{0,8}", fullmatch=True)


@given(st.lists(_segment, min_size=1, max_size=4), st.booleans())
def test_render_is_idempotent(segments, call):
    source = "::".join(segments) + ("()" if call else "")
    once = render(tokenize(source))
    assert render(tokenize(once)) == once
    assert all(seg in once for seg in segments)