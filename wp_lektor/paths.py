from pathlib import PurePosixPath
from typing import Iterable

from .models import ContentItem

CONTENTS_FILE = "contents.lr"
BLOG_DIR = "blog"


def resolve_output_path(
    item: ContentItem, ancestor_slugs: Iterable[str] = ()
) -> PurePosixPath:
    """
    Work out where an item is written inside the export directory.

    Pages nest under their ancestors, posts live under ``blog/`` and any
    other post type gets a dated Markdown file in ``_<type>s/``.

    Args:
        item: The content item to place
        ancestor_slugs: Slugs of the page's ancestors, root first

    Returns:
        Path relative to the export directory
    """
    if item.post_type == "page":
        return PurePosixPath(*ancestor_slugs, item.slug, CONTENTS_FILE)
    if item.post_type == "post":
        return PurePosixPath(BLOG_DIR, item.slug, CONTENTS_FILE)

    day = item.date.strftime("%Y-%m-%d")
    return PurePosixPath(f"_{item.post_type}s", f"{day}-{item.slug}.md")
