# parser/exceptions.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Custom exceptions for recipe parsing

"""Exceptions raised while parsing attacker recipes."""


class ParseError(RuntimeError):
    """Exception raised when recipe parsing fails due to syntax errors.

    Indicates that a recipe in a trace script does not conform to the recipe
    grammar. Used throughout the parsing pipeline to provide consistent error
    handling; the CLI maps it to its own exit code.
    """

    pass
