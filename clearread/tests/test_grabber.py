import threading

import pytest

from clearread.config import ArticleGrabberOptions, ReadabilityOptions
from clearread.exceptions import ExtractionCancelledError
from clearread.extractor.grabber import ArticleGrabber, options_sequence
from clearread.extractor.preprocessor import Preprocessor
from clearread.models.metadata import ArticleMetadata
from clearread.parser import parse_html
from clearread.parser.html_parser import get_body

PARAGRAPHS = [
    "Tide pools form where the ocean retreats twice a day, leaving rocky basins full of water, "
    "and in those basins live anemones, hermit crabs, sea stars and small fish that have adapted "
    "to heat, to sudden changes in salt and to the constant pounding of waves.",
    "Visiting at low tide is the best way to see them, but walk carefully, since the rocks are "
    "slippery, the algae hides sharp barnacles, and every stone you turn over is somebody's roof "
    "that should be put back exactly the way you found it.",
    "Researchers have counted more than a hundred species in a single pool, which makes these "
    "small habitats a favourite place for students, photographers and curious families who want "
    "to watch an ecosystem change over the course of an afternoon.",
    "Climate change is warming the shallow water, however, and long term surveys show shifts in "
    "which animals survive the summer, so volunteers now log temperatures, photograph transects, "
    "and share the data with marine biologists along the coast.",
]

ARTICLE_HTML = """
<html lang="en"><head><title>Understanding Tide Pools - Coastal Notes</title></head>
<body>
  <div class="header"><nav><a href="/">Home</a> <a href="/about">About</a></nav></div>
  <div id="main">
    <div class="article-body">
      <h1>Understanding Tide Pools</h1>
      <p class="byline">By Ada Marsh</p>
      <p>{0}</p>
      <p>{1}</p>
      <p>{2}</p>
      <p>{3}</p>
    </div>
    <div class="sidebar"><p>Related: more reading</p></div>
  </div>
  <div class="footer">Copyright 2024 Coastal Notes</div>
</body></html>
""".format(*PARAGRAPHS)

PLAIN_HTML = """
<html><body><div>
  <p>{0}</p>
  <p>{1}</p>
</div></body></html>
""".format(*PARAGRAPHS)

METADATA = ArticleMetadata(title="Understanding Tide Pools")


class RecordingGrabber(ArticleGrabber):
    """Keeps the text length of every attempt."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.attempt_lengths = []

    def _try_extract_article(self, *args, **kwargs):
        content, direction_nodes = super()._try_extract_article(*args, **kwargs)
        self.attempt_lengths.append(len(self.get_inner_text(content)))
        return content, direction_nodes


def _prepared(html):
    document = parse_html(html)
    Preprocessor().prepare_document(document)
    return document


def test_grab_article_extracts_main_content():
    document = _prepared(ARTICLE_HTML)
    grabber = ArticleGrabber()

    content = grabber.grab_article(document, METADATA)

    assert content is not None
    text = grabber.get_inner_text(content)
    for paragraph in PARAGRAPHS:
        assert grabber.regex.normalize(paragraph) in text
    assert "Copyright" not in text
    assert "Home" not in text
    assert "Related" not in text
    # The heading repeats the title
    assert content.find("h1") is None
    assert content.find(id="readability-page-1") is not None


def test_grab_article_reports_byline_and_language():
    document = _prepared(ARTICLE_HTML)
    grabber = ArticleGrabber()

    content = grabber.grab_article(document, METADATA)

    assert grabber.article_byline == "By Ada Marsh"
    assert "By Ada Marsh" not in grabber.get_inner_text(content)
    assert grabber.article_lang == "en"
    assert grabber.article_dir is None


def test_grab_article_reads_text_direction():
    html = ARTICLE_HTML.replace('<div id="main">', '<div id="main" dir="rtl">')
    grabber = ArticleGrabber()

    grabber.grab_article(_prepared(html), METADATA)

    assert grabber.article_dir == "rtl"


def test_grab_article_reads_text_direction_from_candidate_parent():
    html = """
    <html><body>
      <main dir="rtl">
        <article id="story"><p>{0}</p><p>{1}</p><p>{2}</p></article>
        <aside>See also</aside>
      </main>
    </body></html>
    """.format(*PARAGRAPHS)
    grabber = ArticleGrabber()

    content = grabber.grab_article(_prepared(html), METADATA)

    assert content is not None
    assert grabber.article_dir == "rtl"


def test_fallback_attempt_reads_text_direction_from_candidate_parent():
    html = """
    <html><body>
      <section dir="ltr">
        <div id="story"><p>{0}</p><p>{1}</p></div>
        <aside>See also</aside>
      </section>
    </body></html>
    """.format(*PARAGRAPHS)
    grabber = ArticleGrabber(ReadabilityOptions(char_threshold=100000))

    content = grabber.grab_article(_prepared(html), METADATA)

    assert content is not None
    assert grabber.article_dir == "ltr"


def test_options_sequence_relaxes_one_rule_at_a_time():
    levels = options_sequence(ArticleGrabberOptions())

    assert [
        (o.strip_unlikely_candidates, o.weight_classes, o.clean_conditionally) for o in levels
    ] == [
        (True, True, True),
        (False, True, True),
        (False, False, True),
        (False, False, False),
    ]
    assert len(options_sequence(ArticleGrabberOptions(strip_unlikely_candidates=False))) == 3


def test_attempt_lengths_do_not_shrink_when_relaxing():
    grabber = RecordingGrabber(ReadabilityOptions(char_threshold=100000))

    grabber.grab_article(_prepared(ARTICLE_HTML), METADATA)

    lengths = grabber.attempt_lengths
    assert len(lengths) == 4
    assert lengths == sorted(lengths)


def test_longest_attempt_wins_when_threshold_is_never_met():
    grabber = RecordingGrabber(ReadabilityOptions(char_threshold=100000))

    content = grabber.grab_article(_prepared(ARTICLE_HTML), METADATA)

    assert len(grabber.get_inner_text(content)) == max(grabber.attempt_lengths)
    assert grabber.article_lang == "en"


def test_threshold_boundary():
    baseline = ArticleGrabber(ReadabilityOptions(char_threshold=0))
    length = len(baseline.get_inner_text(baseline.grab_article(_prepared(PLAIN_HTML), ArticleMetadata())))

    exact = RecordingGrabber(ReadabilityOptions(char_threshold=length))
    exact.grab_article(_prepared(PLAIN_HTML), ArticleMetadata())
    assert exact.attempt_lengths == [length]

    above = RecordingGrabber(ReadabilityOptions(char_threshold=length + 1))
    content = above.grab_article(_prepared(PLAIN_HTML), ArticleMetadata())
    assert len(above.attempt_lengths) == 4
    assert len(above.get_inner_text(content)) == length


def test_document_without_text_yields_nothing():
    html = '<html><body><img src="a.jpg"><img src="b.jpg"><img src="c.jpg"></body></html>'

    assert ArticleGrabber().grab_article(_prepared(html), ArticleMetadata()) is None


def test_cancel_event_stops_extraction():
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(ExtractionCancelledError):
        ArticleGrabber().grab_article(_prepared(ARTICLE_HTML), METADATA, cancel_event=cancel_event)


def test_link_density_discounts_hash_links():
    document = parse_html('<p>aaaaaaaaaa <a href="#x">aaaaaaaaaa</a> bbbbbbbbbb</p>')
    grabber = ArticleGrabber()

    hashed = parse_html('<p><a href="#x">aaaaaaaaaa</a> bbbbbbbbbb</p>').find("p")
    plain = parse_html('<p><a href="/x">aaaaaaaaaa</a> bbbbbbbbbb</p>').find("p")

    text_length = len("aaaaaaaaaa bbbbbbbbbb")
    assert grabber.get_link_density(hashed) == pytest.approx(0.3 * 10 / text_length)
    assert grabber.get_link_density(plain) == pytest.approx(10 / text_length)
    assert grabber.get_link_density(document.find("p")) == pytest.approx(0.3 * 10 / 32)
    assert grabber.get_link_density(parse_html("<p></p>").find("p")) == 0.0


def test_initialize_node_combines_tag_class_and_media():
    document = parse_html("""
    <div id="a" class="post-content">text</div>
    <li id="b">item</li>
    <div id="c" class="promo-box">text</div>
    <div id="d"><img src="x.jpg"><iframe src="https://www.youtube.com/embed/v"></iframe></div>
    """)
    grabber = ArticleGrabber()
    options = ArticleGrabberOptions()

    assert grabber.initialize_node(document.find(id="a"), options).content_score == 30
    assert grabber.initialize_node(document.find(id="b"), options).content_score == -3
    assert grabber.initialize_node(document.find(id="c"), options).content_score == 5 - 25
    # Media without surrounding text earns no bonus
    assert grabber.initialize_node(document.find(id="d"), options).content_score == 5
    no_weights = ArticleGrabberOptions(weight_classes=False, preserve_images=False, preserve_videos=False)
    assert grabber.initialize_node(document.find(id="a"), no_weights).content_score == 5


def test_mark_data_tables():
    rows = "".join("<tr><td>1</td><td>2</td></tr>" for _ in range(10))
    document = parse_html(f"""
    <div>
      <table id="header"><tr><th>Name</th></tr><tr><td>x</td></tr></table>
      <table id="layout" role="presentation"><tr><th>Name</th></tr></table>
      <table id="small"><tr><td>1</td><td>2</td></tr><tr><td>3</td><td>4</td></tr></table>
      <table id="long">{rows}</table>
      <table id="caption"><caption>Results</caption><tr><td>1</td></tr></table>
      <table id="span"><tr><td colspan="3">a</td><td colspan="bad">b</td><td>c</td></tr></table>
    </div>
    """)
    grabber = ArticleGrabber()

    grabber.mark_data_tables(document.find("div"))

    def flag(table_id):
        return grabber.is_data_table(document.find(id=table_id))

    assert flag("header")
    assert not flag("layout")
    assert not flag("small")
    assert flag("long")
    assert flag("caption")
    assert flag("span")


def test_clean_conditionally_removes_link_lists_but_keeps_data_tables():
    document = parse_html("""
    <div id="content">
      <div id="links"><a href="/a">First link text here</a> <a href="/b">Second link text here</a></div>
      <table><thead><tr><th>h</th></tr></thead><tr><td><div id="cell">1</div></td></tr></table>
      <div id="prose"><p>A paragraph that is long enough to be kept by the cleaner, with words.</p></div>
    </div>
    """)
    grabber = ArticleGrabber()
    content = document.find(id="content")
    grabber.mark_data_tables(content)

    grabber.clean_conditionally(content, "div", ArticleGrabberOptions())

    assert content.find(id="links") is None
    assert content.find(id="cell") is not None
    assert content.find(id="prose") is not None


def test_clean_keeps_video_embeds():
    document = parse_html("""
    <div>
      <iframe src="https://www.youtube.com/embed/abc"></iframe>
      <iframe src="https://ads.example.com/frame"></iframe>
    </div>
    """)
    grabber = ArticleGrabber()

    grabber.clean(document.find("div"), "iframe")

    frames = document.find_all("iframe")
    assert [frame["src"] for frame in frames] == ["https://www.youtube.com/embed/abc"]


def test_allowed_video_regex_replaces_builtin_pattern():
    document = parse_html('<div><embed src="https://media.example.com/clip"></div>')
    grabber = ArticleGrabber(ReadabilityOptions(allowed_video_regex=r"media\.example\.com"))

    grabber.clean(document.find("div"), "embed")

    assert document.find("embed") is not None


def test_clean_styles_strips_presentation():
    document = parse_html("""
    <div style="color: red" align="center">
      <table width="100" border="1"><tr><td bgcolor="red" height="3">x</td></tr></table>
      <p class="readability-styled" style="display: inline;">kept</p>
      <svg style="fill: red"></svg>
    </div>
    """)
    grabber = ArticleGrabber()

    grabber.clean_styles(document.find("div"))

    assert document.find("div").attrs == {}
    assert document.find("table").attrs == {}
    assert document.find("td").attrs == {}
    assert document.find("p")["style"] == "display: inline;"
    assert document.find("svg")["style"] == "fill: red"


def test_blockquote_descendants_never_become_top_candidate():
    quote = "A quoted paragraph that goes on for long enough, with commas, to get a score. " * 3
    html = f"""
    <html><body>
      <div id="story"><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></div>
      <blockquote><div id="quoted"><p>{quote}</p><p>{quote}</p><p>{quote}</p></div></blockquote>
    </body></html>
    """
    document = _prepared(html)
    grabber = ArticleGrabber()
    options = ArticleGrabberOptions(weight_classes=False)

    candidates = grabber.score_elements(grabber.prepare_nodes(document, options), options)
    quoted = document.find(id="quoted")
    assert grabber.get_score(quoted).content_score > grabber.get_score(document.find(id="story")).content_score

    top_candidate, created = grabber.get_top_candidate(document, get_body(document), candidates, options)

    assert not created
    assert top_candidate.get("id") == "story"
