from typing import Any, Dict, List

DELIMITER = "---\n"

# (record key, Lektor field) in output order
SCALAR_FIELDS_HEAD = [("title", "title"), ("date", "pub_date"), ("author", "author")]
LIST_FIELDS = ["categories", "tags"]
SCALAR_FIELDS_TAIL = [("permalink", "_slug"), ("featured_image", "featured_image")]


def _is_dashes(line: str) -> bool:
    line = line.strip()
    return len(line) >= 3 and line == "-" * len(line)


def escape_dashes(text: str) -> str:
    """Add a dash to lines made only of dashes so they are not read as delimiters."""
    return "".join(
        "-" + line if _is_dashes(line) else line for line in text.splitlines(True)
    )


def _scalar_block(name: str, value: Any) -> str:
    return f"{name}: {value}\n" + DELIMITER


def _list_block(name: str, values: List[str]) -> str:
    return f"{name}: \n\n" + "\n".join(str(value) for value in values) + "\n" + DELIMITER


def serialize(record: Dict[str, Any], body: str = "") -> str:
    """
    Render an export record as a Lektor ``contents.lr`` document.

    Fields are written in a fixed order and only when present in the record;
    the body is always last and is not followed by a delimiter.

    Args:
        record: Normalized export record
        body: Rendered post content

    Returns:
        The document text
    """
    output = ""
    for key, name in SCALAR_FIELDS_HEAD:
        if key in record:
            output += _scalar_block(name, record[key])
    for key in LIST_FIELDS:
        if key in record:
            output += _list_block(key, record[key])
    for key, name in SCALAR_FIELDS_TAIL:
        if key in record:
            output += _scalar_block(name, record[key])

    output += "body: \n"
    output += escape_dashes(body)
    return output
