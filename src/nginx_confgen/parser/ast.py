"""AST builder - Nests the flat token stream into blocks and directives.

The builder is deliberately forgiving. It is used for best-effort import,
so it records syntax errors and carries on instead of raising; callers
decide whether the collected errors are fatal.
"""

from dataclasses import dataclass, field
from enum import Enum

from nginx_confgen.parser.tokenizer import Token, TokenType, tokenize


class NodeKind(Enum):
    DIRECTIVE = "directive"
    BLOCK = "block"


@dataclass
class Node:
    """A directive (``name args;``) or a block (``name args { ... }``).

    One node type for both cases, discriminated by ``kind``. Directives
    never have children.
    """

    kind: NodeKind
    name: str
    args: list[str] = field(default_factory=list)
    line: int = 0
    children: list["Node"] = field(default_factory=list)

    @property
    def is_block(self) -> bool:
        return self.kind is NodeKind.BLOCK


@dataclass
class ParseResult:
    """Top-level nodes plus every syntax error met on the way."""

    children: list[Node] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def build_ast(tokens: list[Token]) -> ParseResult:
    """Build a node tree from tokens.

    Always terminates and always returns a tree, possibly partial.
    """
    result = ParseResult()
    stack: list[Node] = []
    i = 0
    n = len(tokens)

    def attach(node: Node) -> None:
        if stack:
            stack[-1].children.append(node)
        else:
            result.children.append(node)

    while i < n:
        token = tokens[i]

        if token.type is TokenType.BLOCK_END:
            if stack:
                stack.pop()
            else:
                result.errors.append(f"Unexpected '}}' at line {token.line}")
            i += 1
            continue

        if token.type is not TokenType.DIRECTIVE:
            # Comments and stray semicolons carry no structure
            i += 1
            continue

        name = token.value or ""
        line = token.line
        args: list[str] = []
        i += 1
        while i < n and tokens[i].type is TokenType.DIRECTIVE:
            args.append(tokens[i].value or "")
            i += 1

        if i < n and tokens[i].type is TokenType.BLOCK_START:
            node = Node(NodeKind.BLOCK, name, args, line)
            attach(node)
            stack.append(node)
            i += 1
        elif i < n and tokens[i].type is TokenType.SEMICOLON:
            attach(Node(NodeKind.DIRECTIVE, name, args, line))
            i += 1
        else:
            result.errors.append(f"Unexpected token after '{name}' at line {line}")
            # Resynchronize on the next source line
            while i < n and tokens[i].line == line:
                i += 1

    if stack:
        innermost = stack[-1]
        result.errors.append(f"Unclosed block '{innermost.name}' at line {innermost.line}")

    return result


def parse(text: str) -> ParseResult:
    """Tokenize and build in one go."""
    return build_ast(tokenize(text))


INDENT = "    "
_NEEDS_QUOTES = frozenset(" \t\r\n;{}#\"'")


def quote_arg(arg: str) -> str:
    """Quote an argument if the tokenizer would otherwise split or drop it."""
    if arg and not any(ch in _NEEDS_QUOTES for ch in arg):
        return arg
    if '"' not in arg:
        return f'"{arg}"'
    if "'" not in arg:
        return f"'{arg}'"
    return '"' + arg.replace('"', '\\"').replace('\\\\"', '\\"') + '"'


def format_statement(name: str, args: list[str]) -> str:
    """Render ``name arg1 arg2`` with arguments quoted where needed."""
    return " ".join([name] + [quote_arg(arg) for arg in args])


def serialize(nodes: list[Node], level: int = 0) -> list[str]:
    """Render nodes back to canonical text lines.

    One directive per line, blocks indented by four spaces per level.
    Comments are not part of the tree and do not come back.
    """
    lines: list[str] = []
    pad = INDENT * level
    for node in nodes:
        head = format_statement(node.name, node.args)
        if node.is_block:
            lines.append(f"{pad}{head} {{")
            lines.extend(serialize(node.children, level + 1))
            lines.append(f"{pad}}}")
        else:
            lines.append(f"{pad}{head};")
    return lines
