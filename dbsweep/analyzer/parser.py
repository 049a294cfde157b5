"""Tree-sitter parser for database-access discovery."""
from pathlib import Path
from typing import Optional
from tree_sitter import Language, Parser, Tree
import tree_sitter_python as tspython
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript

from .models import SourceParseError


class LanguageParser:
    """Multi-language parser using tree-sitter v0.25+ API."""

    SUPPORTED_LANGUAGES = {
        '.py': 'python',
        '.pyi': 'python',
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
    }

    def __init__(self, language: str):
        """Initialize parser for given language.

        Args:
            language: One of 'python', 'javascript', 'typescript', 'tsx'

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = self._create_parser()

    def _create_parser(self) -> Parser:
        """Factory method using tree-sitter v0.25+ API.

        Returns:
            Configured Parser instance

        Raises:
            ValueError: If language is not supported
        """
        if self.language == 'python':
            lang = Language(tspython.language())
        elif self.language == 'javascript':
            lang = Language(tsjavascript.language())
        elif self.language == 'typescript':
            lang = Language(tstypescript.language_typescript())
        elif self.language == 'tsx':
            lang = Language(tstypescript.language_tsx())
        else:
            raise ValueError(f"Unsupported language: {self.language}")

        return Parser(lang)

    def parse_source(self, source_code: bytes, file_path: str = "<memory>") -> Tree:
        """Parse source bytes into a syntax tree.

        tree-sitter recovers from syntax errors instead of failing, so an
        error-bearing tree is rejected here to make the failure visible.

        Args:
            source_code: Source code bytes
            file_path: Path used in the error message

        Returns:
            Parsed Tree

        Raises:
            SourceParseError: If the tree contains syntax errors
        """
        tree = self.parser.parse(source_code)
        if tree.root_node.has_error:
            raise SourceParseError(file_path, self._first_error_line(tree))
        return tree

    def _first_error_line(self, tree: Tree) -> Optional[int]:
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.is_error or node.is_missing:
                return node.start_point[0] + 1
            stack.extend(reversed([child for child in node.children if child.has_error or child.is_missing]))
        return None

    @classmethod
    def language_for_path(cls, file_path: str | Path) -> Optional[str]:
        """Map a file path to its grammar name, or None if unsupported."""
        return cls.SUPPORTED_LANGUAGES.get(Path(file_path).suffix.lower())
