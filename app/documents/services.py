"""
Document rendering services.
"""
import markdown
from markdown.extensions import Extension


class EscapeHtmlExtension(Extension):
    """Render raw HTML in the source as text instead of passing it through."""

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")


class MarkdownRenderer:
    """Service for rendering markdown documents."""

    EXTENSIONS = [
        "fenced_code",
        "tables",
        "codehilite",
        "toc",
        "sane_lists",
    ]

    def render(self, md_text: str) -> str:
        """Convert Markdown → HTML (GitHub-flavoured-ish) with highlighted code blocks."""
        return markdown.markdown(
            md_text,
            extensions=self.EXTENSIONS + [EscapeHtmlExtension()],
            extension_configs={
                "codehilite": {"guess_lang": False, "css_class": "highlight"},
            },
        )
