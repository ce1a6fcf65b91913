"""Registry of named functions callable from expressions.

Function names are case-insensitive and unique. Registering a name a second
time keeps the first definition, so built-ins cannot be replaced by accident.
Aliases map alternative spellings (``arcsin``, ``maximum``, ...) onto
registered names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .config import VAR_NAME_RE
from .logging_config import get_logger
from .types import RegistrationError, ValidationIssue

logger = get_logger("functions")

# Arity marker for functions accepting one or more arguments
VARIADIC = -1

DEFAULT_ALIASES = {
    "arcsin": "asin",
    "arccos": "acos",
    "arctan": "atan",
    "minimum": "min",
    "maximum": "max",
    "absolute": "abs",
}

_PARAMETER_NAMES = ("x", "y", "z", "w")


@dataclass(frozen=True)
class FunctionDescriptor:
    """A registered function and its metadata."""

    name: str
    arity: int
    apply: Callable[..., Any]
    description: str = ""
    category: str = "general"
    user_defined: bool = False

    @property
    def is_variadic(self) -> bool:
        return self.arity == VARIADIC

    def arity_problem(self, argc: int) -> str | None:
        """Describe why ``argc`` arguments do not fit, or None when they do."""
        if self.is_variadic:
            if argc < 1:
                return f"Function {self.name} requires at least one argument"
            return None
        if argc != self.arity:
            return f"Function {self.name} expects {self.arity} argument(s), got {argc}"
        return None

    def signature(self) -> str:
        if self.is_variadic:
            return f"{self.name}(x1, x2, ...)"
        if self.arity <= len(_PARAMETER_NAMES):
            params = _PARAMETER_NAMES[: self.arity]
        else:
            params = tuple(f"x{i}" for i in range(1, self.arity + 1))
        return f"{self.name}({', '.join(params)})"


class FunctionRegistry:
    """Name -> FunctionDescriptor mapping with aliases and lookup helpers."""

    def __init__(self, install_aliases: bool = True) -> None:
        self._functions: dict[str, FunctionDescriptor] = {}
        self._aliases: dict[str, str] = dict(DEFAULT_ALIASES) if install_aliases else {}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_function(name)

    def __len__(self) -> int:
        return len(self._functions)

    def _resolve(self, name: str) -> str:
        key = name.lower()
        return self._aliases.get(key, key)

    def register_function(
        self,
        name: str,
        arity: int,
        apply: Callable[..., Any],
        description: str = "",
        category: str = "general",
        user_defined: bool = False,
    ) -> bool:
        """Register a function.

        Args:
            name: Identifier used in expressions (case-insensitive)
            arity: Number of arguments, or VARIADIC for one or more
            apply: Callable receiving the evaluated arguments
            description: Short help text
            category: Grouping used by documentation and search
            user_defined: Whether the function may later be removed

        Returns:
            True if registered, False if the name was already taken

        Raises:
            RegistrationError: If the name, arity or callable is invalid
        """
        if not isinstance(name, str) or not VAR_NAME_RE.match(name):
            raise RegistrationError(
                f"Invalid function name: {name!r}. Must start with a letter or underscore "
                "and contain only letters, digits and underscores.",
                "INVALID_FUNCTION_NAME",
            )
        if isinstance(arity, bool) or not isinstance(arity, int) or (arity < 0 and arity != VARIADIC):
            raise RegistrationError(
                f"Invalid arity for {name}: {arity!r}", "INVALID_ARITY"
            )
        if not callable(apply):
            raise RegistrationError(
                f"Implementation of {name} is not callable", "INVALID_FUNCTION"
            )

        key = name.lower()
        if key in self._functions or key in self._aliases:
            logger.info(f"Function {key} is already registered; keeping the existing definition")
            return False

        self._functions[key] = FunctionDescriptor(
            key, arity, apply, description, category, user_defined
        )
        return True

    def has_function(self, name: str) -> bool:
        return self._resolve(name) in self._functions

    def get_function(self, name: str) -> FunctionDescriptor | None:
        return self._functions.get(self._resolve(name))

    def remove_function(self, name: str) -> bool:
        """Remove a user-defined function and any aliases pointing at it."""
        key = self._resolve(name)
        descriptor = self._functions.get(key)
        if descriptor is None:
            return False
        if not descriptor.user_defined:
            raise RegistrationError(
                f"Cannot remove built-in function: {key}", "BUILTIN_FUNCTION"
            )
        del self._functions[key]
        for alias in [a for a, target in self._aliases.items() if target == key]:
            del self._aliases[alias]
        return True

    def create_alias(self, alias: str, target: str) -> None:
        if not isinstance(alias, str) or not VAR_NAME_RE.match(alias):
            raise RegistrationError(f"Invalid alias name: {alias!r}", "INVALID_FUNCTION_NAME")
        key = alias.lower()
        resolved = self._resolve(target)
        if resolved not in self._functions:
            raise RegistrationError(
                f"Function '{target}' is not defined", "FUNCTION_NOT_FOUND"
            )
        if key in self._functions:
            raise RegistrationError(f"Name already in use: {key}", "NAME_IN_USE")
        self._aliases[key] = resolved

    def remove_alias(self, alias: str) -> bool:
        return self._aliases.pop(alias.lower(), None) is not None

    def aliases(self) -> dict[str, str]:
        """Aliases whose target is currently registered."""
        return {a: t for a, t in self._aliases.items() if t in self._functions}

    def all_functions(self) -> list[FunctionDescriptor]:
        return list(self._functions.values())

    def functions_by_category(self, category: str) -> list[FunctionDescriptor]:
        category = category.lower()
        return [f for f in self._functions.values() if f.category == category]

    def categories(self) -> list[str]:
        return sorted({f.category for f in self._functions.values()})

    def documentation(self, name: str) -> dict[str, Any] | None:
        descriptor = self.get_function(name)
        if descriptor is None:
            return None
        return {
            "name": descriptor.name,
            "signature": descriptor.signature(),
            "arity": "variadic" if descriptor.is_variadic else descriptor.arity,
            "description": descriptor.description,
            "category": descriptor.category,
            "user_defined": descriptor.user_defined,
            "aliases": sorted(a for a, t in self._aliases.items() if t == descriptor.name),
        }

    def search(self, query: str) -> list[FunctionDescriptor]:
        """Functions whose name, alias, category or description mentions ``query``."""
        needle = query.strip().lower()
        if not needle:
            return []
        matches = []
        for descriptor in self._functions.values():
            aliases = [a for a, t in self._aliases.items() if t == descriptor.name]
            haystack = [descriptor.name, descriptor.category, descriptor.description.lower(), *aliases]
            if any(needle in text for text in haystack):
                matches.append(descriptor)
        return matches

    def statistics(self) -> dict[str, Any]:
        per_category: dict[str, int] = {}
        for descriptor in self._functions.values():
            per_category[descriptor.category] = per_category.get(descriptor.category, 0) + 1
        user_defined = sum(1 for f in self._functions.values() if f.user_defined)
        return {
            "total": len(self._functions),
            "builtin": len(self._functions) - user_defined,
            "user_defined": user_defined,
            "aliases": len(self.aliases()),
            "categories": per_category,
        }

    def check_call(self, name: str, argc: int) -> ValidationIssue | None:
        """Check a call site without raising."""
        descriptor = self.get_function(name)
        if descriptor is None:
            return ValidationIssue(f"Unknown function: {name}", "UNKNOWN_IDENTIFIER")
        problem = descriptor.arity_problem(argc)
        if problem is not None:
            return ValidationIssue(problem, "ARITY_ERROR")
        return None
