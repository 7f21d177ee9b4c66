"""Read-only access to a parsed XML tree.

The decoder only uses the methods of :class:`Fragment`,
so other tree implementations can be supported by implementing that interface.
"""

from __future__ import annotations

from xmlmapper.parsers.xml import CDATAElement, parse_xml_from_string

__all__ = (
    "Fragment",
    "ElementFragment",
    "parse_fragment",
)


class Fragment:
    """The interface of a single XML node, as the decoder uses it."""

    tag: str

    def child_named(self, tag: str) -> Fragment | None:
        """Find the first child element with the given tag."""
        raise NotImplementedError()

    def children_named(self, tag: str) -> list[Fragment]:
        """Find all child elements with the given tag, in document order."""
        raise NotImplementedError()

    def attribute_named(self, name: str) -> str | None:
        raise NotImplementedError()

    @property
    def text(self) -> str | None:
        """The text content of the element itself, without whitespace around it."""
        raise NotImplementedError()

    @property
    def cdata(self) -> bytes | None:
        raise NotImplementedError()

    def child_names(self) -> set[str]:
        """Tell which child tags exist."""
        raise NotImplementedError()


class ElementFragment(Fragment):
    """A fragment backed by an :class:`~xml.etree.ElementTree.Element`.
    The element is not copied, the fragment only provides a view on it.
    """

    __slots__ = ("element",)

    def __init__(self, element: CDATAElement):
        self.element = element

    @property
    def tag(self) -> str:
        return self.element.tag

    def child_named(self, tag):
        # Not using element.find(), as that interprets the tag as a path.
        for child in self.element:
            if child.tag == tag:
                return ElementFragment(child)
        return None

    def children_named(self, tag):
        return [ElementFragment(child) for child in self.element if child.tag == tag]

    def attribute_named(self, name):
        return self.element.get(name)

    @property
    def text(self):
        # Text around child elements (the tail) also belongs to this element.
        parts = [self.element.text or ""]
        parts.extend(child.tail or "" for child in self.element)
        text = "".join(parts).strip()
        return text or None

    @property
    def cdata(self):
        return getattr(self.element, "cdata", None)

    def child_names(self):
        return {child.tag for child in self.element}

    def __eq__(self, other):
        return isinstance(other, ElementFragment) and other.element is self.element

    def __hash__(self):
        return id(self.element)

    def __repr__(self):
        return f"<ElementFragment: <{self.element.tag}>>"


def parse_fragment(xml_string: str | bytes) -> ElementFragment:
    """Parse an XML document, and return the fragment of the root element."""
    return ElementFragment(parse_xml_from_string(xml_string))
