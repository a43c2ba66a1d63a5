from .tokenizer import Token, CIFTokenizer
from .blocks import Scalar, Loop, RawBlock, CIFBlockParser
from .numeric import parse_numeric, strip_quotes
