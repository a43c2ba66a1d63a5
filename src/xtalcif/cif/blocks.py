"""Data block parser.

Consumes the token stream produced by CIFTokenizer and groups it into raw
data blocks. A raw block keeps every simple tag and every loop_ table of one
data_ section, keyed by the lowercased tag name, without interpreting any of
the values.
"""

import logging
from collections import OrderedDict, namedtuple

logger = logging.getLogger(__name__)

__all__ = ["Scalar", "Loop", "RawBlock", "CIFBlockParser", "reserved_word", "is_tag"]


Scalar = namedtuple("Scalar", ["tag", "value", "line"])
Scalar.__doc__ = "A simple ``_tag value`` pair."

Loop = namedtuple("Loop", ["labels", "rows", "line"])
Loop.__doc__ = """A loop_ table: the column labels and the rows of values.

Every row holds exactly len(labels) values.
"""


RESERVED_WORDS = ("data", "loop", "global", "save", "stop")


def reserved_word(token):
    """Return the CIF reserved word a token starts with, or None.

    Reserved words are case-insensitive and never quoted.
    """
    if token is None or token.quoted:
        return None
    i = token.value.find("_")
    if i == -1:
        return None
    rword = token.value[:i].lower()
    if rword not in RESERVED_WORDS:
        return None
    if rword in ("loop", "global", "stop") and len(token.value) != i + 1:
        return None
    return rword


def is_tag(token):
    return token is not None and not token.quoted and token.value.startswith("_")


class RawBlock:

    """All tags and loops found under one data_ section.

    Values are kept verbatim. Lookups are case-insensitive; the original
    spelling of every tag is kept in ``tags``.
    """

    def __init__(self, name, line=None):
        self.name = name
        self.line = line
        self.items = OrderedDict()
        self.tags = []
        self.loops = []
        self.warnings = []

    def __str__(self):
        return "RawBlock(name = %s)" % (self.name)

    def __contains__(self, tag):
        return tag.lower() in self.items

    def __getitem__(self, tag):
        return self.items[tag.lower()]

    def get(self, tag, default=None):
        return self.items.get(tag.lower(), default)

    def warn(self, line_num, text):
        if line_num is None:
            msg = text
        else:
            msg = "[line: %d] %s" % (line_num, text)
        logger.debug(f"data_{self.name}: {msg}")
        self.warnings.append(msg)

    def _register(self, tag, item, line_num):
        clower = tag.lower()
        if clower in self.items:
            self.warn(line_num, f"redefined tag {tag}")
        else:
            self.tags.append(tag)
        self.items[clower] = item

    def add_scalar(self, tag, value, line_num=None):
        self._register(tag, Scalar(tag, value, line_num), line_num)

    def add_loop(self, labels, rows, line_num=None):
        loop = Loop(tuple(labels), tuple(rows), line_num)
        self.loops.append(loop)
        for label in labels:
            self._register(label, loop, line_num)
        return loop

    def value(self, tag, default=None):
        """Return the value of a tag.

        A simple tag gives its value; a column of a single-row loop gives
        that row's value. Anything else gives default.
        """
        item = self.get(tag)
        if isinstance(item, Scalar):
            return item.value
        if isinstance(item, Loop) and len(item.rows) == 1:
            clower = tag.lower()
            for label, value in zip(item.labels, item.rows[0]):
                if label.lower() == clower:
                    return value
        return default

    def first_value(self, tags, default=None):
        """Return the value of the first tag in tags that is present."""
        for tag in tags:
            value = self.value(tag)
            if value is not None:
                return value
        return default

    def find_loop(self, predicate):
        """Return the first loop whose lowercased label list satisfies predicate."""
        for loop in self.loops:
            if predicate([label.lower() for label in loop.labels]):
                return loop
        return None

    def column(self, tag):
        """Return all values of a loop column, or a 1-tuple for a simple tag."""
        item = self.get(tag)
        if isinstance(item, Scalar):
            return (item.value,)
        if isinstance(item, Loop):
            clower = tag.lower()
            idx = [label.lower() for label in item.labels].index(clower)
            return tuple(row[idx] for row in item.rows)
        return ()


class CIFBlockParser:

    """Stateless parser turning a token stream into a list of RawBlock."""

    def parse(self, tokenizer):
        blocks = []
        cif_block = None

        while not tokenizer.eof():
            token = tokenizer.peek()
            rword = reserved_word(token)

            if rword == "data":
                tokenizer.next()
                cif_block = RawBlock(token.value[5:], token.line)
                blocks.append(cif_block)
                continue

            ## ignore anything in the input until the first data_ block
            if cif_block is None:
                tokenizer.next()
                continue

            if rword == "loop":
                tokenizer.next()
                self._parse_loop(tokenizer, cif_block, token.line)
            elif rword is not None:
                tokenizer.next()
                cif_block.warn(token.line, f"unable to handle {token.value} syntax, skipped")
            elif is_tag(token):
                tokenizer.next()
                self._parse_tag(tokenizer, cif_block, token)
            else:
                # stray value
                tokenizer.next()

        return blocks

    def _parse_tag(self, tokenizer, cif_block, tag_token):
        value_token = tokenizer.peek()
        if value_token is None:
            cif_block.warn(tag_token.line, f"missing value for {tag_token.value} at end of file")
            return
        if is_tag(value_token) or reserved_word(value_token) is not None:
            cif_block.warn(tag_token.line, f"missing value for {tag_token.value}")
            return
        tokenizer.next()
        cif_block.add_scalar(tag_token.value, value_token.value, tag_token.line)

    def _parse_loop(self, tokenizer, cif_block, line_num):
        labels = []
        while is_tag(tokenizer.peek()):
            labels.append(tokenizer.next().value)

        if not labels:
            cif_block.warn(line_num, "Found loop_ with no labels")
            return

        values = []
        while not tokenizer.eof():
            token = tokenizer.peek()
            if is_tag(token) or reserved_word(token) is not None:
                break
            values.append(tokenizer.next().value)

        ncols = len(labels)
        nextra = len(values) % ncols
        if nextra:
            cif_block.warn(
                line_num,
                f"loop_ with {ncols} labels has {len(values)} values; "
                f"discarding {nextra} trailing values of an incomplete row",
            )
            values = values[: len(values) - nextra]

        rows = [tuple(values[i : i + ncols]) for i in range(0, len(values), ncols)]
        cif_block.add_loop(labels, rows, line_num)
