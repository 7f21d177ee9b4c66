from xmlmapper.decoding import ElementFragment, parse_fragment


def test_fragment_navigation():
    fragment = parse_fragment(
        b'<item id="1"><title>First</title><title>Second</title><enclosure url="a.mp3"/></item>'
    )
    assert fragment.tag == "item"
    assert fragment.attribute_named("id") == "1"
    assert fragment.attribute_named("missing") is None
    assert fragment.child_names() == {"title", "enclosure"}

    assert fragment.child_named("title").text == "First"
    assert [child.text for child in fragment.children_named("title")] == ["First", "Second"]
    assert fragment.child_named("guid") is None
    assert fragment.children_named("guid") == []


def test_fragment_prefixed_tag():
    """Tags are not interpreted as ElementPath expressions."""
    fragment = parse_fragment(b"<item><itunes:author>Me</itunes:author></item>")
    assert fragment.child_named("itunes:author").text == "Me"


def test_fragment_text():
    fragment = parse_fragment(b"<a>\n  one <b>ignored</b> two\n</a>")
    assert fragment.text == "one  two"
    assert parse_fragment(b"<a>  </a>").text is None
    assert parse_fragment(b"<a/>").text is None


def test_fragment_cdata():
    fragment = parse_fragment(b"<a><b><![CDATA[<p>html</p>]]></b><c>plain</c></a>")
    assert fragment.child_named("b").cdata == b"<p>html</p>"
    assert fragment.child_named("b").text is None
    assert fragment.child_named("c").cdata is None


def test_fragment_equality():
    fragment = parse_fragment(b"<a><b/></a>")
    assert fragment.child_named("b") == fragment.child_named("b")
    assert fragment.child_named("b") != fragment
    assert isinstance(fragment, ElementFragment)
    assert repr(fragment) == "<ElementFragment: <a>>"
