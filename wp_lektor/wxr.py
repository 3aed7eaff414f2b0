import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

import lxml.etree as etree
import phpserialize

from .exceptions import SourceError
from .models import ContentItem
from .source import ContentRepository

# Define namespaces for lxml XPath
NAMESPACES = {
    "excerpt": "http://wordpress.org/export/1.2/excerpt/",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "wp": "http://wordpress.org/export/1.2/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "rss": "http://purl.org/rss/1.0/modules/syndication/",
}

WP = "{%s}" % NAMESPACES["wp"]

# Taxonomies WordPress registers for its built-in types
DEFAULT_TAXONOMIES = {
    "post": ["category", "post_tag", "post_format"],
}

POST_FORMAT_PREFIX = "post-format-"

CHANNEL_FIELDS = ("title", "link", "description", WP + "base_site_url", WP + "base_blog_url")


def dict_to_list_if_sequential(d):
    """Convert dicts with sequential integer keys (PHP lists) to lists."""
    if isinstance(d, dict):
        keys = list(d.keys())
        if keys == list(range(len(keys))):
            return [d[k] for k in sorted(d.keys())]
    return d


def looks_serialized(value: Any) -> bool:
    return (
        isinstance(value, str)
        and len(value) > 2
        and value[0] in ("a", "s", "O", "i", "d", "b", "N")
        and value[1] == ":"
    )


def try_php_unserialize(serialized_string: str):
    """
    Attempts to unserialize a PHP serialized string using phpserialize.
    Returns the deserialized Python object, or the original string on failure.
    """
    if not serialized_string:
        return serialized_string
    try:
        if isinstance(serialized_string, str):
            serialized_bytes = serialized_string.encode("utf-8", errors="replace")
        else:
            serialized_bytes = serialized_string
        result = phpserialize.loads(serialized_bytes, decode_strings=True)
        return dict_to_list_if_sequential(result)
    except ValueError as e:
        sys.stderr.write(f"Warning: Failed to unserialize value: {e}\n")
        return serialized_string


def maybe_unserialize(value: Any):
    if looks_serialized(value):
        result = try_php_unserialize(value)
        if result is not None:
            return dict_to_list_if_sequential(result)
    return value


def parse_wp_date(value: Optional[str]) -> Optional[datetime]:
    if not value or value.startswith("0000-00-00"):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d")


def _as_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    return int(value)


class WxrRepository(ContentRepository):
    """
    Content source backed by a WordPress WXR export file.

    Args:
        xml_filepath: Path to the WordPress XML export file (.wxr)
        uploads_dir: Local copy of the site's ``wp-content/uploads`` directory
    """

    def __init__(self, xml_filepath: str, uploads_dir: Optional[str] = None):
        self.xml_filepath = xml_filepath
        self.uploads_dir = uploads_dir
        self.channel: Dict[str, str] = {}
        self.authors: Dict[str, str] = {}
        self.items: Dict[int, ContentItem] = {}
        self.attachments: Dict[int, Dict[str, Any]] = {}
        self.taxonomies: Dict[str, List[str]] = {
            post_type: list(names) for post_type, names in DEFAULT_TAXONOMIES.items()
        }
        self._parse()

    def _parse(self) -> None:
        try:
            context = etree.iterparse(
                self.xml_filepath,
                events=("end",),
                tag=("item", WP + "author") + CHANNEL_FIELDS,
                recover=True,
            )
            for event, element in context:
                if element.tag == "item":
                    try:
                        self._read_item(element)
                    except ValueError as e:
                        sys.stderr.write(f"Warning: Skipping malformed item: {e}\n")
                    finally:
                        self._release(element)
                elif element.tag == WP + "author":
                    self._read_author(element)
                    self._release(element)
                elif element.getparent() is not None and element.getparent().tag == "channel":
                    self.channel[etree.QName(element).localname] = element.text or ""
        except OSError as e:
            raise SourceError(f"Cannot read WXR file {self.xml_filepath}: {e}") from e
        except etree.XMLSyntaxError as e:
            raise SourceError(f"Cannot parse WXR file {self.xml_filepath}: {e}") from e

    @staticmethod
    def _release(element) -> None:
        # Free the element and earlier siblings as iterparse moves on
        element.clear()
        prev = element.getprevious()
        while prev is not None and prev.tag in ("item", WP + "author"):
            element.getparent().remove(prev)
            prev = element.getprevious()

    def _read_author(self, element) -> None:
        login = element.findtext("wp:author_login", namespaces=NAMESPACES)
        name = element.findtext("wp:author_display_name", namespaces=NAMESPACES)
        if login:
            self.authors[login] = name or login

    def _read_item(self, item) -> None:
        def get_text(xpath_expr):
            elements = item.xpath(xpath_expr, namespaces=NAMESPACES)
            if not elements or elements[0].text is None:
                return None
            text = elements[0].text
            if isinstance(text, bytes):
                return text.decode("utf-8", errors="replace")
            return text

        raw_id = get_text("wp:post_id")
        try:
            post_id = int(raw_id)
        except (TypeError, ValueError):
            sys.stderr.write(f"Warning: Skipping item without a valid post id: {raw_id!r}\n")
            return

        post_type = get_text("wp:post_type") or "post"
        custom_fields = self._read_postmeta(item)

        if post_type == "attachment":
            self.attachments[post_id] = {
                "url": get_text("wp:attachment_url") or get_text("guid"),
                "file": custom_fields.get("_wp_attached_file"),
            }

        terms: Dict[str, List[str]] = {}
        for category in item.xpath("category"):
            domain = category.get("domain")
            if not domain:
                continue
            if domain == "post_format":
                name = (category.get("nicename") or "").replace(POST_FORMAT_PREFIX, "", 1)
            else:
                name = category.text
            if name:
                terms.setdefault(domain, []).append(name)
            registered = self.taxonomies.setdefault(post_type, [])
            if domain not in registered:
                registered.append(domain)

        thumbnail = custom_fields.get("_thumbnail_id")
        if isinstance(thumbnail, list):
            thumbnail = thumbnail[0] if thumbnail else None
        try:
            featured_image = int(thumbnail) if thumbnail else None
        except (TypeError, ValueError):
            featured_image = None

        creator = get_text("dc:creator") or ""
        self.items[post_id] = ContentItem(
            id=post_id,
            post_type=post_type,
            title=get_text("title") or "",
            content=get_text("content:encoded") or "",
            excerpt=get_text("excerpt:encoded") or "",
            author=self.authors.get(creator, creator),
            date=parse_wp_date(get_text("wp:post_date") or get_text("wp:post_date_gmt")),
            slug=get_text("wp:post_name") or "",
            parent=_as_int(get_text("wp:post_parent")) or None,
            status=get_text("wp:status") or "",
            permalink=get_text("link") or "",
            terms=terms,
            featured_image=featured_image,
            custom_fields=custom_fields,
        )

    @staticmethod
    def _read_postmeta(item) -> Dict[str, Any]:
        custom_fields: Dict[str, Any] = {}
        for postmeta in item.xpath("wp:postmeta", namespaces=NAMESPACES):
            meta_key = postmeta.findtext("wp:meta_key", namespaces=NAMESPACES)
            meta_value_elem = postmeta.find("wp:meta_value", NAMESPACES)
            if not meta_key or meta_value_elem is None:
                continue

            value = maybe_unserialize(meta_value_elem.text or "")

            # Repeated keys accumulate into a list
            if meta_key in custom_fields:
                current_value = custom_fields[meta_key]
                if isinstance(current_value, list):
                    current_value.append(value)
                else:
                    custom_fields[meta_key] = [current_value, value]
            else:
                custom_fields[meta_key] = value
        return custom_fields

    def get_posts(self, post_types: List[str], status: str = "publish") -> List[int]:
        return sorted(
            post_id
            for post_id, item in self.items.items()
            if item.status == status and item.post_type in post_types
        )

    def get_post(self, post_id: int) -> ContentItem:
        return self.items[post_id]

    def taxonomies_for(self, post_type: str) -> List[str]:
        return list(self.taxonomies.get(post_type, []))

    def attachment_url(self, attachment_id: int) -> Optional[str]:
        attachment = self.attachments.get(attachment_id)
        return attachment["url"] if attachment else None

    def attachment_path(self, attachment_id: int) -> Optional[str]:
        """Local source file of an attachment inside the uploads directory."""
        attachment = self.attachments.get(attachment_id)
        if not attachment or not self.uploads_dir:
            return None

        relative = attachment["file"]
        if not relative and attachment["url"]:
            url_path = unquote(urlparse(attachment["url"]).path)
            marker = "/uploads/"
            if marker not in url_path:
                return None
            relative = url_path.split(marker, 1)[1]
        if not relative:
            return None
        return os.path.join(self.uploads_dir, relative)

    def home_url(self) -> str:
        return (self.channel.get("base_blog_url") or self.channel.get("link") or "").rstrip("/")

    def site_options(self) -> Dict[str, Any]:
        return {
            "blogname": self.channel.get("title", ""),
            "blogdescription": self.channel.get("description", ""),
            "siteurl": self.channel.get("base_site_url") or self.channel.get("link", ""),
            "home": self.home_url(),
        }
