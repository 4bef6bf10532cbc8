"""Composable class filters."""

from .base import AcceptAll, ClassFilter
from .logic import And, Not, Or
from .predicates import (
    AbstractOnly,
    Annotated,
    HasModifiers,
    InPackage,
    InterfaceOnly,
    NameMatches,
    SubclassOf,
)

__all__ = [
    "AbstractOnly",
    "AcceptAll",
    "And",
    "Annotated",
    "ClassFilter",
    "HasModifiers",
    "InPackage",
    "InterfaceOnly",
    "NameMatches",
    "Not",
    "Or",
    "SubclassOf",
]
