# parser/grammar.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# LALR(1) grammar and parser for attacker recipes using SLY

"""Recipe grammar implementation using SLY parser generator.

    start  : args
    args   : expr | args COMMA expr
    expr   : ID LPAREN args RPAREN
           | ID LPAREN RPAREN
           | ID | REF | FRESH

The start symbol is a comma-separated list so that one CSV cell can carry
all the values of an attacker `insert`; single-recipe callers check the
list length.
"""

from typing import List, Tuple

from sly import Parser
from .lexer import RecipeLexer
from .ast_nodes import Recipe, KnowledgeRef, AttackerName, Atom, Apply
from .exceptions import ParseError
from utils.logger import get_logger


class _RecipeParser(Parser):
    """SLY-based LALR(1) parser for recipe lists.

    Attributes:
        tokens: Token types from RecipeLexer
    """

    tokens = RecipeLexer.tokens

    @_("args")
    def start(self, p) -> Tuple[Recipe, ...]:
        """Start rule: one or more recipes."""
        return tuple(p.args)

    @_("expr")
    def args(self, p) -> List[Recipe]:
        return [p.expr]

    @_("args COMMA expr")
    def args(self, p) -> List[Recipe]:
        return p.args + [p.expr]

    @_("ID LPAREN args RPAREN")
    def expr(self, p) -> Recipe:
        """Function application."""
        return Apply(p.ID, tuple(p.args))

    @_("ID LPAREN RPAREN")
    def expr(self, p) -> Recipe:
        """Explicit nullary application, e.g. `ok()`."""
        return Apply(p.ID, ())

    @_("ID")
    def expr(self, p) -> Recipe:
        return Atom(p.ID)

    @_("REF")
    def expr(self, p) -> Recipe:
        return KnowledgeRef(p.REF)

    @_("FRESH")
    def expr(self, p) -> Recipe:
        return AttackerName(p.FRESH)

    def parse(self, text: str) -> Tuple[Recipe, ...]:
        """Parse recipe text into a tuple of recipe trees.

        Raises:
            ParseError: If the text is empty or contains syntax errors
        """
        logger = get_logger()
        logger.debug(f"Parsing recipe: {text}")

        try:
            result = super().parse(RecipeLexer().tokenize(text))

            if result is None and text.strip() == "":
                raise ParseError("Recipe is empty.")

            if result is None:
                raise ParseError("Failed to parse recipe (syntax error).")

            return result

        except ParseError:
            logger.debug("Parse error encountered")
            raise
        except Exception as e:
            logger.debug(f"Unexpected parsing error: {e}")
            raise ParseError(f"Parse failed: {e}")

    def error(self, token):
        """Handle syntax errors during parsing.

        Raises:
            ParseError: Always raises with detailed error information
        """
        if token:
            error_msg = (
                f"Syntax error near '{token.value}' "
                f"(type: {token.type}) at position {token.index}"
            )
        else:
            error_msg = "Syntax error: Unexpected end of recipe"

        raise ParseError(error_msg)
