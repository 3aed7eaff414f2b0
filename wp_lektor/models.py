from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ContentItem:
    """
    A published post, page or custom-type entry as read from the content source.

    The exporter treats instances as read-only snapshots.
    """

    id: int
    post_type: str
    title: str = ""
    content: str = ""
    excerpt: str = ""
    author: str = ""
    date: Optional[datetime] = None
    slug: str = ""
    parent: Optional[int] = None
    status: str = "publish"
    permalink: str = ""
    terms: Dict[str, List[str]] = field(default_factory=dict)
    featured_image: Optional[int] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExportResult:
    directory: str
    archive: Optional[str] = None
    exported: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
