"""Import analysis: extraction, usage detection, resolution and suggestions."""

from importsniff.analysis.context import AnalysisContext
from importsniff.analysis.extractor import ImportExtractor, extract_imports
from importsniff.analysis.resolver import PathAliases, resolve_specifier
from importsniff.analysis.suggestions import DirectoryIndex, suggest_files
from importsniff.analysis.tokenizer import Dialect, tokenize
from importsniff.analysis.usage import TokenView, detect_usage

__all__ = [
    "AnalysisContext",
    "Dialect",
    "DirectoryIndex",
    "ImportExtractor",
    "PathAliases",
    "TokenView",
    "detect_usage",
    "extract_imports",
    "resolve_specifier",
    "suggest_files",
    "tokenize",
]
