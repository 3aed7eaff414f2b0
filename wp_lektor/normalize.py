import fnmatch
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from .models import ContentItem

PRIVATE_PREFIX = "_"

# WordPress taxonomy name -> Lektor field name; anything else keeps its name
TAXONOMY_FIELDS = {
    "post_tag": "tags",
    "category": "categories",
}

FORMAT_TAXONOMY = "post_format"


def is_private_key(key: str) -> bool:
    return key.startswith(PRIVATE_PREFIX)


def is_excluded(key: str, excluded_custom_fields: Optional[Iterable[str]]) -> bool:
    return bool(excluded_custom_fields) and any(
        fnmatch.fnmatch(key, pattern) for pattern in excluded_custom_fields
    )


def strip_home_url(url: str, home_url: str) -> str:
    if home_url:
        return url.replace(home_url.rstrip("/"), "")
    return url


def image_filename(url: str) -> str:
    """Last segment of the URL path, e.g. ``photo.jpg`` for ``.../2016/04/photo.jpg``."""
    return urlparse(url).path.split("/")[-1]


def convert_meta(
    item: ContentItem,
    home_url: str = "",
    excluded_custom_fields: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """
    Convert an item's own fields and its public custom fields to key/value pairs.

    Args:
        item: The content item
        home_url: Site home URL, stripped from the permalink
        excluded_custom_fields: Custom field names to leave out (wildcards allowed)

    Returns:
        Ordered mapping of export fields
    """
    output = {
        "id": item.id,
        "title": item.title,
        "date": item.date.strftime("%Y-%m-%d %H:%M:%S") if item.date else None,
        "author": item.author,
        "excerpt": item.excerpt,
    }

    # Lektor has no redirects, so keep the exact legacy path
    if item.post_type != "page":
        output["permalink"] = strip_home_url(item.permalink, home_url)

    for key, value in item.custom_fields.items():
        if is_private_key(key) or is_excluded(key, excluded_custom_fields):
            continue
        output[key] = value

    return output


def convert_terms(item: ContentItem, taxonomies: Iterable[str]) -> Dict[str, Any]:
    """Collect term names for every taxonomy registered against the item's type."""
    output = {}
    for taxonomy in taxonomies:
        names = list(item.terms.get(taxonomy, []))
        if taxonomy == FORMAT_TAXONOMY:
            output["format"] = names[0] if names else None
        else:
            output[TAXONOMY_FIELDS.get(taxonomy, taxonomy)] = names
    return output


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def remove_empty(meta: Dict[str, Any]) -> Dict[str, Any]:
    # falsy values just add clutter, but a numeric 0 is still a value
    return {
        key: value for key, value in meta.items() if is_numeric(value) or value
    }


def normalize(
    item: ContentItem,
    home_url: str = "",
    taxonomies: Iterable[str] = (),
    featured_image_url: Optional[str] = None,
    excluded_custom_fields: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Build the flat export record for one item.

    Args:
        item: The content item
        home_url: Site home URL
        taxonomies: Taxonomies registered for the item's post type
        featured_image_url: Full-size URL of the item's featured image, if any
        excluded_custom_fields: Custom field names to leave out

    Returns:
        Export record with empty values removed
    """
    meta = convert_meta(item, home_url, excluded_custom_fields)
    meta.update(convert_terms(item, taxonomies))
    if featured_image_url:
        meta["featured_image"] = image_filename(featured_image_url)
    return remove_empty(meta)
