# parser/lexer.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Lexical analyzer for attacker recipes using SLY

"""Lexical analyzer for attacker recipe strings.

A recipe tells the replay engine how the attacker computes a term from
what it already knows. Recipes appear in trace scripts, so the token set
is deliberately small.

Supported Tokens:
- References: $0, $1, ... (knowledge items by index)
- Attacker names: ~label
- Identifiers: function symbols, free names and constants
- Punctuation: (, ), ,
- Whitespace: ignored during tokenization
"""

from sly import Lexer
from utils.logger import get_logger


class RecipeLexer(Lexer):
    """SLY-based lexer for attacker recipes.

    Attributes:
        tokens: Set of valid token types
        ignore: Characters to skip during tokenization
    """

    tokens = {
        "REF",
        "FRESH",
        "ID",
        "LPAREN",
        "RPAREN",
        "COMMA",
    }

    ignore = " \t\r\n"

    LPAREN = r"\("
    RPAREN = r"\)"
    COMMA = r","

    ID = r"[a-zA-Z_][a-zA-Z0-9_]*"

    @_(r"\$[0-9]+")
    def REF(self, t):
        t.value = int(t.value[1:])
        return t

    @_(r"~[a-zA-Z_][a-zA-Z0-9_]*")
    def FRESH(self, t):
        t.value = t.value[1:]
        return t

    def error(self, t):
        """Reject characters outside the recipe alphabet.

        Raises:
            ValueError: Always raised with character and position information
        """
        logger = get_logger()

        illegal_char = t.value[0]
        error_pos = self.index

        logger.debug(f"Illegal character '{illegal_char}' at position {error_pos}")

        self.index += 1

        raise ValueError(
            f"Illegal character '{illegal_char}' encountered at position {error_pos}"
        )
