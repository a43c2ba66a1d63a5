import pytest

from xtalcif.cif.tokenizer import CIFTokenizer, Token, split_lines

from .base_test_case import UnitBase


def _values(text):
    return [token.value for token in CIFTokenizer.from_text(text)]


class TestCIFTokenizer(UnitBase):

    def test_whitespace_separates_tokens(self):
        assert _values("data_x  _cell_length_a\t5.0\n") == ["data_x", "_cell_length_a", "5.0"]

    def test_single_quoted_value_is_one_token(self):
        tokens = list(CIFTokenizer.from_text("_title 'a b c'"))
        assert len(tokens) == 2
        assert tokens[1] == Token("a b c", 1, True)

    def test_double_quoted_value_is_one_token(self):
        assert _values('_name "sodium chloride" x') == ["_name", "sodium chloride", "x"]

    def test_quote_inside_word_does_not_close(self):
        assert _values("_name 'it's here' next") == ["_name", "it's here", "next"]

    def test_doubled_quote_is_literal(self):
        assert _values("_name 'don''t'") == ["_name", "don't"]

    def test_empty_quoted_value(self):
        tokens = list(CIFTokenizer.from_text("_a '' _b"))
        assert tokens[1] == Token("", 1, True)
        assert tokens[2].value == "_b"

    def test_comments_are_dropped(self):
        text = "# header comment\n_a 1 # trailing\n_b 2#glued\n"
        assert _values(text) == ["_a", "1", "_b", "2"]

    def test_hash_inside_quotes_is_data(self):
        assert _values("_a 'x # y'") == ["_a", "x # y"]

    def test_text_field_is_one_token(self):
        text = "data_x\n_t\n;\nline one\nline two\n;\n_next 1\n"
        tokens = list(CIFTokenizer.from_text(text))
        assert [t.value for t in tokens] == ["data_x", "_t", "line one\nline two", "_next", "1"]
        assert tokens[2].quoted
        assert tokens[2].line == 3
        assert tokens[3].line == 7

    def test_text_field_keeps_content_of_opening_line(self):
        assert _values(";first\nsecond\n;\n") == ["first\nsecond"]

    def test_text_field_keeps_hash_and_quotes(self):
        assert _values(";\n# not a comment 'x'\n;") == ["# not a comment 'x'"]

    def test_semicolon_inside_line_is_ordinary(self):
        assert _values("_a x;y") == ["_a", "x;y"]

    def test_quoted_tokens_are_flagged(self):
        tokens = list(CIFTokenizer.from_text("loop_ 'loop_'"))
        assert [t.quoted for t in tokens] == [False, True]

    def test_crlf_line_endings(self):
        tokens = list(CIFTokenizer.from_text("_a 1\r\n_b 2\r\n"))
        assert [(t.value, t.line) for t in tokens] == [("_a", 1), ("1", 1), ("_b", 2), ("2", 2)]

    def test_unterminated_quote_takes_rest_of_line(self):
        tokenizer = CIFTokenizer.from_text("_a 'abc def\n_b 1\n")
        assert [t.value for t in tokenizer] == ["_a", "abc def", "_b", "1"]
        assert len(tokenizer.diagnostics) == 1
        line_num, msg = tokenizer.diagnostics[0]
        assert line_num == 1
        assert msg == "[line: 1] unterminated quoted string"

    def test_unterminated_text_field_takes_rest_of_document(self):
        tokenizer = CIFTokenizer.from_text("_a\n;\nrest\n_b 1\n")
        assert [t.value for t in tokenizer] == ["_a", "rest\n_b 1\n"]
        assert tokenizer.diagnostics == [(2, "[line: 2] unterminated multi-line text field")]

    def test_cursor(self):
        tokenizer = CIFTokenizer.from_text("a b")
        assert len(tokenizer) == 2
        assert tokenizer.peek().value == "a"
        assert tokenizer.next().value == "a"
        assert tokenizer.next().value == "b"
        assert tokenizer.eof()
        assert tokenizer.peek() is None
        assert tokenizer.next() is None
        tokenizer.reset()
        assert not tokenizer.eof()
        assert tokenizer.peek().value == "a"

    def test_empty_document(self):
        tokenizer = CIFTokenizer.from_text("")
        assert tokenizer.eof()
        assert tokenizer.diagnostics == []


@pytest.mark.parametrize(
    "text, lines",
    [
        ("a\nb", ["a", "b"]),
        ("a\r\nb\n", ["a", "b", ""]),
        ("", [""]),
    ],
)
def test_split_lines(text, lines):
    assert split_lines(text) == lines
