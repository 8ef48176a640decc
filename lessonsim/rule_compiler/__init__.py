"""
Rule Compiler - Compiles card description text into structured cards.

The rule compiler:
1. Takes card sheet rows (CSV or mappings)
2. Matches the Japanese description against ordered pattern tables
3. Produces validated Card records with effect trees
4. Reports unparsed clauses for human review

The compiler is an authoring tool; the engine never parses text.
"""

from .compiler import (
    CardTextCompiler,
    CardRow,
    CompilationResult,
    CompilationStatus,
    ParsedText,
    compile_card_text,
    normalize,
)

__all__ = [
    "CardTextCompiler",
    "CardRow",
    "CompilationResult",
    "CompilationStatus",
    "ParsedText",
    "compile_card_text",
    "normalize",
]
