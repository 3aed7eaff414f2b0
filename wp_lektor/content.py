import re
import warnings

from bs4 import BeautifulSoup, Comment, MarkupResemblesLocatorWarning, NavigableString
from markdownify import markdownify as md

# Suppress BeautifulSoup warning
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

# Elements that stand on their own and are never wrapped in <p>
BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3",
    "h4", "h5", "h6", "header", "hr", "iframe", "li", "main", "nav",
    "noscript", "ol", "p", "pre", "script", "section", "style", "table",
    "ul", "video",
}

BLANK_LINE = re.compile(r"\n[ \t]*\n\s*")


def _is_standalone(node) -> bool:
    if isinstance(node, Comment):
        return True
    if isinstance(node, NavigableString):
        return not node.strip()
    return node.name in BLOCK_TAGS


def autop(html: str) -> str:
    """
    Wrap top-level runs of text and inline elements in ``<p>`` paragraphs.

    A blank line inside a run starts a new paragraph. Block elements,
    comments such as ``<!--more-->`` and everything inside them are left
    alone. Content made only of block elements is returned unchanged.
    """
    soup = BeautifulSoup(html, "html.parser")
    children = list(soup.children)
    if all(_is_standalone(child) for child in children):
        return html.strip()

    pieces = []
    paragraph = []

    def flush():
        text = "".join(paragraph).strip()
        if text:
            pieces.append(f"<p>{text}</p>")
        paragraph.clear()

    for child in children:
        if isinstance(child, Comment) or (
            not isinstance(child, NavigableString) and child.name in BLOCK_TAGS
        ):
            flush()
            pieces.append(child.output_ready() if isinstance(child, Comment) else str(child))
        elif isinstance(child, NavigableString):
            chunks = BLANK_LINE.split(child.output_ready())
            for index, chunk in enumerate(chunks):
                if index:
                    flush()
                paragraph.append(chunk)
        else:
            paragraph.append(str(child))
    flush()
    return "\n".join(pieces)


def convert_html_to_markdown(html_content: str) -> str:
    """
    Converts post HTML to Markdown using markdownify.

    Args:
        html_content: The HTML content to convert

    Returns:
        The converted Markdown content
    """
    if not html_content:
        return ""

    markdown = md(
        autop(html_content),
        heading_style="ATX",
        bullets="-",
        escape_asterisks=False,
        escape_underscores=False,
        wrap=False,
    )
    return re.sub(r"\n{3,}", "\n\n", markdown).strip()


def render_content(html: str, convert_to_markdown: bool = False) -> str:
    """
    Render raw post content for the ``body`` field.

    Args:
        html: Post content as stored by WordPress
        convert_to_markdown: Emit Markdown instead of HTML

    Returns:
        Body text ending in a newline, or an empty string for empty content
    """
    if not html or not html.strip():
        return ""

    content = autop(html)
    if convert_to_markdown:
        markdown = convert_html_to_markdown(html)
        # faulty links; fall back to plain HTML
        if "[]: " not in markdown:
            content = markdown
    return content + "\n"
