"""Built-in help for Unison keywords, operators and literal markers."""

from __future__ import annotations

_CONDITIONAL = (
    "A conditional statement. If the Boolean expression argument is true, the first "
    "branch of the statement will be executed, if it is false, the second branch will "
    "be run instead."
)
_MATCH = (
    "Introduces a way to check a value against a pattern. The expression to the right "
    "of `match` is the target value of the match, and the statement(s) following "
    "`with` are the potential patterns."
)
_FORALL = "Describes a type that is universally quantified."

SYNTAX_HELP: dict[str, str] = {
    # Keywords
    "do": "`do` introduces a delayed computation, something with the form `() -> a`.",
    "cases": (
        "It's common to pattern match on a function argument, like "
        "`(a -> match a with a1 -> ...)`. `cases` shortens this to `cases a1 -> ...`"
    ),
    "match": _MATCH,
    "with": _MATCH,
    "handle": (
        "The `handle` keyword indicates that a function is an ability handler. The first "
        "argument is an expression performing a particular ability to handle and what "
        "follows dictates how the ability should be handled."
    ),
    "ability": (
        "Introduces an ability definition. The name of the ability follows the keyword "
        "and the operations that the ability can perform are listed as function "
        "signatures after the `where` keyword."
    ),
    "where": "Used after an ability name to list the operations that the ability can perform.",
    "if": _CONDITIONAL,
    "then": _CONDITIONAL,
    "else": _CONDITIONAL,
    "use": (
        "A `use` clause tells Unison to allow identifiers from a given namespace to be "
        "used without prefixing in the lexical scope where the use clause appears."
    ),
    "type": "Introduces a type definition.",
    "unique": "A unique type modifier. Unique types are identified by their name and structure.",
    "structural": (
        "A structural type modifier. Structural types are identified only by their structure."
    ),
    "forall": _FORALL,
    "∀": _FORALL,
    "let": "Introduces a local binding.",
    "and": "Boolean AND operator.",
    "or": "Boolean OR operator.",
    "true": "Boolean literal `true`.",
    "false": "Boolean literal `false`.",
    "True": "Boolean literal `True`.",
    "False": "Boolean literal `False`.",
    # Operators
    "@": (
        "In a pattern match, `@` is an 'as-pattern'. It is a way of binding a variable "
        "to an element in the pattern match."
    ),
    "+:": "List cons operator. Adds an element to the front of a list.",
    ":+": "List snoc operator. Adds an element to the end of a list.",
    "++": "List concatenation operator.",
    "->": "Arrow in a function type or lambda expression.",
    "=>": "Used in ability handlers.",
    "|": "Pattern separator in match expressions.",
}

TEXT_LITERAL_HELP = "The value inside the double quotes is a `Text` literal."

NUMERIC_LITERAL_HELP = {
    "float": "A numeric literal. This is a `Float` value.",
    "int": "A numeric literal. This is an `Int` value (negative integer).",
    "nat": "A numeric literal. This is a `Nat` value (natural number). Use `-` prefix for `Int`.",
}


def get_syntax_help(word: str) -> str | None:
    """Help text for a built-in construct, matched on exact token text."""
    return SYNTAX_HELP.get(word)
