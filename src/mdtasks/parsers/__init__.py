from .frontmatter import MarkdownParseError, parse_frontmatter
from .task_parser import parse_content

__all__ = ["MarkdownParseError", "parse_frontmatter", "parse_content"]
