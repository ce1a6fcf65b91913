"""sciexpr package: tokenizer, parser, evaluator and calculator facade for scientific expressions."""

__all__ = [
    "config",
    "numeric",
    "modes",
    "functions",
    "operators",
    "tokenizer",
    "parser",
    "scientific",
    "evaluator",
    "calculator",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "validate_expression",
    "solve",
    "integrate",
]
