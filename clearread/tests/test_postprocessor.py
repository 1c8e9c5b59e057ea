from clearread.extractor.postprocessor import Postprocessor, split_uri
from clearread.parser import parse_html

BASE_URI = "https://example.com/section/page.html"

CONTENT_HTML = """
<div id="content" class="article-content">
  <nav class="breadcrumbs"><a href="/">Home</a> &gt; <a href="/section/">Section</a></nav>
  <p class="lead readability-styled">
    <a href="../other.html">Other</a>
    <a href="javascript:void(0)">Click me</a>
    <a href="#notes">Notes</a>
    <a href="//cdn.example.com/file.pdf">PDF</a>
  </p>
  <div class="page keepme">
    <img src="../img/pic.jpg">
    <img src="./local.png">
    <img src="/root.gif">
    <img src="https://other.example.org/abs.jpg">
  </div>
</div>
"""


def _process(**kwargs):
    document = parse_html(CONTENT_HTML)
    content = document.find(id="content")
    Postprocessor().post_process_content(document, content, BASE_URI, **kwargs)
    return content


def test_split_uri():
    assert split_uri(BASE_URI) == ("https", "example.com", "/section/page.html")
    assert split_uri("http://example.com") == ("http", "example.com", "/")
    assert split_uri("not a uri") is None


def test_to_absolute_uri_rules():
    postprocessor = Postprocessor()
    args = ("https", "https://example.com", "https://example.com/section/")

    assert postprocessor.to_absolute_uri("../img/pic.jpg", *args) == "https://example.com/section/../img/pic.jpg"
    assert postprocessor.to_absolute_uri("./a.png", *args) == "https://example.com/section/a.png"
    assert postprocessor.to_absolute_uri("/b.png", *args) == "https://example.com/b.png"
    assert postprocessor.to_absolute_uri("//cdn.example.com/c.png", *args) == "https://cdn.example.com/c.png"
    assert postprocessor.to_absolute_uri("#top", *args) == "#top"
    assert postprocessor.to_absolute_uri("mailto:someone@example.com", *args) == "mailto:someone@example.com"
    assert postprocessor.to_absolute_uri("ab", *args) == "ab"


def test_links_and_images_become_absolute():
    content = _process()

    hrefs = [a["href"] for a in content.find_all("a")]
    assert hrefs == [
        "https://example.com/section/../other.html",
        "#notes",
        "https://cdn.example.com/file.pdf",
    ]

    sources = [img["src"] for img in content.find_all("img")]
    assert sources == [
        "https://example.com/section/../img/pic.jpg",
        "https://example.com/section/local.png",
        "https://example.com/root.gif",
        "https://other.example.org/abs.jpg",
    ]


def test_javascript_links_become_text():
    content = _process()

    assert "Click me" in content.get_text()
    assert all("javascript:" not in a["href"] for a in content.find_all("a"))


def test_breadcrumb_navigation_is_removed():
    content = _process()

    assert content.find("nav") is None
    assert "Section" not in content.get_text()


def test_classes_are_stripped_except_preserved_ones():
    content = _process()

    assert not content.has_attr("class")
    assert content.find("p")["class"] == "readability-styled"
    assert content.find("div")["class"] == "page"


def test_additional_classes_and_keep_classes():
    content = _process(additional_classes_to_preserve={"keepme"})
    assert content.find("div")["class"] == "page keepme"

    content = _process(keep_classes=True)
    assert content["class"] == "article-content"
    assert content.find("p")["class"] == "lead readability-styled"


def test_unparsable_base_uri_leaves_links_alone():
    document = parse_html(CONTENT_HTML)
    content = document.find(id="content")

    Postprocessor().post_process_content(document, content, "relative/path")

    assert content.find("img")["src"] == "../img/pic.jpg"
