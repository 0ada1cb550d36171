# parser/__init__.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Recipe parsing components for trace scripts

"""Attacker recipe parsing.

Trace scripts describe attacker computations as recipes: expressions over
knowledge references (`$n`), attacker names (`~label`), public free names
and public function symbols. This package turns recipe text into AST nodes;
evaluating them against the attacker's knowledge is done by
`core.attacker`.

Core Functions:
    parse_recipe: exactly one recipe
    parse_recipes: a comma-separated list of recipes

Example:
    >>> from parser import parse_recipe
    >>> parse_recipe("dec($5, proj_2($7))")
    Apply(symbol='dec', args=(KnowledgeRef(index=5), Apply(...)))
"""

from typing import Tuple

from .exceptions import ParseError
from .ast_nodes import Recipe, KnowledgeRef, AttackerName, Atom, Apply
from .grammar import _RecipeParser
from utils.logger import get_logger


def parse_recipes(source: str) -> Tuple[Recipe, ...]:
    """Parse a comma-separated list of recipes.

    A fresh parser instance is used for each call.

    Raises:
        ParseError: The text is empty or malformed
    """
    parser = _RecipeParser()

    try:
        return parser.parse(source)

    except ParseError:
        raise

    except Exception as exc:
        get_logger().debug(f"Unexpected parsing error: {type(exc).__name__}: {exc}")
        raise ParseError(str(exc)) from exc


def parse_recipe(source: str) -> Recipe:
    """Parse exactly one recipe.

    Raises:
        ParseError: The text is malformed or holds more than one recipe
    """
    recipes = parse_recipes(source)
    if len(recipes) != 1:
        raise ParseError(f"Expected a single recipe, got {len(recipes)}: {source!r}")
    return recipes[0]


__all__ = [
    "parse_recipe",
    "parse_recipes",
    "ParseError",
    "Recipe",
    "KnowledgeRef",
    "AttackerName",
    "Atom",
    "Apply",
]
