"""Lexical analysis of CIF text.

The tokenizer splits a CIF document into an ordered list of tokens. It
understands the lexical rules of the format: whitespace separated words,
single and double quoted strings, ``#`` comments and semicolon delimited
multi-line text fields. It never raises on malformed input; problems such as
an unterminated quote are recorded in ``CIFTokenizer.diagnostics`` and the
token is recovered as well as possible.
"""

import logging
import re
from collections import namedtuple

logger = logging.getLogger(__name__)

__all__ = ["Token", "CIFTokenizer", "split_lines"]


Token = namedtuple("Token", ["value", "line", "quoted"])
Token.__doc__ = """One lexical unit of a CIF document.

value is the token text with quotes or semicolon delimiters removed, line the
1-based source line the token starts on, and quoted is True for quoted strings
and multi-line text fields. Quoted tokens are plain data: they are never
interpreted as tags or reserved words.
"""

_RE_LINE_SPLIT = re.compile(r"\r?\n")
_RE_TEXT_FIELD = re.compile(r"^\s*;")


def split_lines(text):
    """Split document text into physical lines (LF or CRLF)."""
    return _RE_LINE_SPLIT.split(text)


class CIFTokenizer:

    """Forward cursor over the tokens of a CIF document.

    The document is tokenized up front, so the cursor can be reset and
    re-read any number of times.
    """

    def __init__(self, lines):
        self.lines = list(lines)
        self.diagnostics = []
        self.tokens = self._tokenize()
        self.pos = 0

    @classmethod
    def from_text(cls, text):
        return cls(split_lines(text))

    def __len__(self):
        return len(self.tokens)

    def __iter__(self):
        return iter(self.tokens)

    def eof(self):
        return self.pos >= len(self.tokens)

    def peek(self):
        """Return the next token without consuming it, or None at the end."""
        if self.eof():
            return None
        return self.tokens[self.pos]

    def next(self):
        """Consume and return the next token, or None at the end."""
        if self.eof():
            return None
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def reset(self):
        self.pos = 0

    def _diagnose(self, line_num, text):
        msg = "[line: %d] %s" % (line_num, text)
        logger.debug(msg)
        self.diagnostics.append((line_num, msg))

    def _tokenize(self):
        tokens = []
        nlines = len(self.lines)
        i = 0
        while i < nlines:
            ln = self.lines[i]

            ## semi-colon multi-line strings
            if _RE_TEXT_FIELD.match(ln):
                start = i + 1
                lmerge = []
                first = ln.lstrip()[1:]
                if first.strip():
                    lmerge.append(first)
                i += 1
                while i < nlines and not _RE_TEXT_FIELD.match(self.lines[i]):
                    lmerge.append(self.lines[i])
                    i += 1
                if i < nlines:
                    # closing delimiter
                    i += 1
                else:
                    self._diagnose(start, "unterminated multi-line text field")
                tokens.append(Token("\n".join(lmerge), start, True))
                continue

            tokens.extend(self._split_line(ln, i + 1))
            i += 1
        return tokens

    def _split_line(self, ln, line_num):
        tokens = []
        n = len(ln)
        j = 0
        while j < n:
            ch = ln[j]
            if ch.isspace():
                j += 1
                continue
            if ch == "#":
                break
            if ch in "'\"":
                value, j = self._read_quoted(ln, j, line_num)
                tokens.append(Token(value, line_num, True))
                continue
            k = j
            while k < n and not ln[k].isspace() and ln[k] != "#":
                k += 1
            tokens.append(Token(ln[j:k], line_num, False))
            j = k
        return tokens

    def _read_quoted(self, ln, start, line_num):
        """Read a quoted string starting at ln[start].

        Returns the unquoted value and the index just past the closing quote.
        A quote only closes the string when followed by whitespace or the end
        of the line; a doubled quote stands for one literal quote.
        """
        quote = ln[start]
        n = len(ln)
        buf = []
        k = start + 1
        while k < n:
            ch = ln[k]
            if ch == quote:
                if k + 1 < n and ln[k + 1] == quote:
                    buf.append(quote)
                    k += 2
                    continue
                if k + 1 == n or ln[k + 1].isspace():
                    return "".join(buf), k + 1
            buf.append(ch)
            k += 1
        self._diagnose(line_num, "unterminated quoted string")
        return "".join(buf), n
