from lxml import etree

from ..exceptions import ParseError


def parse_document(stream) -> etree._Element:
    """Parse an XML document from a stream and return its root.

    The whole stream is read sequentially. Binary streams are decoded
    with the encoding declared by the document. Text streams are already
    decoded, so their declaration is ignored. Entities are not resolved
    and no network access is allowed.

    Raises:
        ParseError: If the document is not well-formed XML.
    """
    data = stream.read()
    encoding = None
    if isinstance(data, str):
        data = data.encode("utf-8")
        encoding = "utf-8"

    parser = etree.XMLParser(
        encoding=encoding,
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
        remove_comments=True
    )
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(f"Malformed XML: {e}") from e

    # An empty document parses to None with some parser settings.
    if root is None:
        raise ParseError("Empty XML document")

    return root


def local_name(element: etree._Element) -> str:
    """Return the tag of an element without its namespace."""
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def children(element: etree._Element, name: str) -> list[etree._Element]:
    """Return all direct children with a given local name."""
    return [child for child in element if local_name(child) == name]


def child(element: etree._Element, name: str) -> etree._Element | None:
    """Return the first direct child with a given local name."""
    for candidate in element:
        if local_name(candidate) == name:
            return candidate
    return None


def find_path(element: etree._Element, *names: str) -> etree._Element | None:
    """Follow a path of local names from `element`, first match per step."""
    current = element
    for name in names:
        if current is None:
            return None
        current = child(current, name)
    return current


def child_text(element: etree._Element | None, *names: str) -> str:
    """Return the stripped text of the element at a path, '' if absent."""
    target = find_path(element, *names) if element is not None else None
    if target is None or target.text is None:
        return ""
    return target.text.strip()


def required_attribute(element: etree._Element, name: str) -> str:
    """Return an attribute value, raising `ParseError` if it is missing."""
    value = element.get(name)
    if value is None:
        raise ParseError(
            f"Missing required attribute '{name}' on <{local_name(element)}> "
            f"(line {element.sourceline})"
        )
    return value


def to_int(value: str, name: str) -> int:
    """Convert an attribute value to an int, raising `ParseError`."""
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        raise ParseError(f"Invalid integer for '{name}': {value!r}") from None


def to_float(value: str, name: str) -> float:
    """Convert an attribute value to a float, raising `ParseError`."""
    try:
        return float(value.strip())
    except (AttributeError, ValueError):
        raise ParseError(f"Invalid number for '{name}': {value!r}") from None


def optional_float(
        element: etree._Element | None,
        name: str,
        default: float = 0.0
) -> float:
    """Return a float attribute, or `default` when it is absent."""
    if element is None:
        return default
    value = element.get(name)
    if value is None or value.strip() == "":
        return default
    return to_float(value, name)
