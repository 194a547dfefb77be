"""Parser package - Converts raw configuration text into structured models.

Parsing is best effort. Syntax errors and unsupported constructs are
collected, never raised.
"""

from nginx_confgen.parser.tokenizer import Token, TokenType, tokenize
from nginx_confgen.parser.ast import Node, NodeKind, ParseResult, build_ast, parse, serialize
from nginx_confgen.parser.nginx_conf import ConfigImporter, ImportResult, import_config, parse_config

__all__ = [
    "ConfigImporter",
    "ImportResult",
    "Node",
    "NodeKind",
    "ParseResult",
    "Token",
    "TokenType",
    "build_ast",
    "import_config",
    "parse",
    "parse_config",
    "serialize",
    "tokenize",
]
