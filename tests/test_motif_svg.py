from urllib.parse import unquote

from motif.motif_svg import (
    SvgElement, create_svg_url, generate_svg, normalize_svg, parse_svg,
)

SVG_OPEN = '<svg xmlns="http://www.w3.org/2000/svg"'


def test_parse_svg_properties_and_blocks():
    tree = parse_svg("viewBox: 0 0 10 10; circle { cx, cy: 5; r: 4 }")
    assert tree.name == "svg"
    assert tree.attrs == {"viewBox": "0 0 10 10"}
    circle = tree.find("circle")
    assert circle.attrs == {"cx": "5", "cy": "5", "r": "4"}


def test_parse_svg_selector_chain_and_id():
    tree = parse_svg("g#shapes rect { width: 1 }")
    g = tree.find("g")
    assert g.attrs == {"id": "shapes"}
    assert g.find("rect").attrs == {"width": "1"}


def test_parse_svg_content():
    tree = parse_svg('text { content: "hi there" }')
    assert tree.find("text").children == ["hi there"]


def test_parse_svg_block_value_goes_to_defs():
    tree = parse_svg("rect { fill: defs pattern { circle { r: .5 } } }")
    rect = tree.find("rect")
    assert rect.attrs["fill"] == "url(#pattern-1)"
    pattern = tree.find("defs").find("pattern")
    assert pattern.attrs["id"] == "pattern-1"
    assert pattern.find("circle").attrs == {"r": ".5"}


def test_parse_svg_block_type():
    tree = parse_svg("feGaussianBlur { stdDeviation: 2 }", type="block", name="filter")
    assert tree.children[0].name == "filter"
    assert tree.find("feGaussianBlur").attrs == {"stdDeviation": "2"}


def test_generate_svg():
    markup = generate_svg(parse_svg("viewBox: 0 0 10 10; circle { cx, cy: 5; r: 4 }"))
    assert markup == (
        SVG_OPEN + ' viewBox="0 0 10 10"><circle cx="5" cy="5" r="4"/></svg>'
    )


def test_generate_svg_escapes():
    root = SvgElement("svg")
    text = root.append(SvgElement("text", {"data-x": 'a"b'}))
    text.append("1 < 2")
    markup = generate_svg(root)
    assert 'data-x="a&quot;b"' in markup
    assert "1 &lt; 2" in markup


def test_normalize_svg():
    assert normalize_svg("<svg><rect/></svg>") == SVG_OPEN + "><rect/></svg>"
    assert normalize_svg("<rect/>") == SVG_OPEN + "><rect/></svg>"
    already = SVG_OPEN + "/>"
    assert normalize_svg(already) == already


def test_create_svg_url():
    url = create_svg_url(SVG_OPEN + "/>")
    assert url.startswith('url("data:image/svg+xml;utf8,')
    assert url.endswith('")')
    assert " " not in url[4:-1]
    assert unquote(url[len('url("data:image/svg+xml;utf8,'):-2]) == SVG_OPEN + "/>"


def test_create_svg_url_with_fragment():
    assert create_svg_url("<svg/>", "filter-2").endswith('#filter-2")')
