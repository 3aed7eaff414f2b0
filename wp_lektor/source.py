from typing import Any, Dict, List, Optional

from .models import ContentItem


class ContentRepository:
    """
    Read-only view of a WordPress site used by the exporter.

    Subclasses provide the lookups; ancestor resolution is shared.
    """

    uploads_dir: Optional[str] = None

    def get_posts(self, post_types: List[str], status: str = "publish") -> List[int]:
        """Ids of items with the given status and type, ascending."""
        raise NotImplementedError

    def get_post(self, post_id: int) -> ContentItem:
        """Fetch one item; raises KeyError for an unknown id."""
        raise NotImplementedError

    def taxonomies_for(self, post_type: str) -> List[str]:
        raise NotImplementedError

    def attachment_url(self, attachment_id: int) -> Optional[str]:
        raise NotImplementedError

    def attachment_path(self, attachment_id: int) -> Optional[str]:
        raise NotImplementedError

    def home_url(self) -> str:
        raise NotImplementedError

    def site_options(self) -> Dict[str, Any]:
        raise NotImplementedError

    def ancestors(self, item: ContentItem) -> List[ContentItem]:
        """Parents of ``item``, root first. Stops at a missing parent or a cycle."""
        chain = []
        seen = {item.id}
        parent_id = item.parent
        while parent_id and parent_id not in seen:
            seen.add(parent_id)
            try:
                parent = self.get_post(parent_id)
            except KeyError:
                break
            chain.append(parent)
            parent_id = parent.parent
        chain.reverse()
        return chain
