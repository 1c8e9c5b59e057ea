"""
End-to-end extraction of a complete blog page.

Runs the public ``Readability`` API over a page with navigation, a sidebar,
comments, share buttons, a figure and a data table, and checks that the
article survives and the clutter does not.
"""
import pytest

from clearread import Readability, ReadabilityOptions, is_probably_readerable
from clearread.parser import parse_html

PAGE_URI = "https://blog.acme.example/engineering/build-times.html"

PARAGRAPHS = [
    "Our monorepo build used to take forty minutes on a clean checkout, which meant that "
    "engineers batched changes, skipped local runs, and waited on continuous integration "
    "far longer than anyone liked.",
    "The first fix was remote caching, since most targets never change between commits, "
    "and sharing their outputs across laptops, build agents and release machines removed "
    "a huge amount of repeated work.",
    "Next we split the slowest test suites by ownership, ran them in parallel shards, and "
    "moved the flaky end-to-end checks into a nightly job, where failures are triaged by "
    "the team on call.",
    "Finally, we measured everything, because every regression we caught early was one "
    "the whole company did not pay for later, and the dashboards now show build time next "
    "to deploy frequency.",
]

PAGE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>How We Cut Build Times In Half - Acme Engineering Blog</title>
  <meta property="og:site_name" content="Acme Engineering">
  <meta property="article:published_time" content="2024-02-10T09:00:00Z">
  <meta name="description" content="Notes on caching, sharding and measuring our builds.">
  <script>window.analytics = true;</script>
  <style>.post {{ max-width: 40em; }}</style>
</head>
<body>
  <header class="site-header"><nav><a href="/">Acme</a> <a href="/blog/">Blog</a></nav></header>
  <main>
    <article class="post">
      <h1>How We Cut Build Times In Half</h1>
      <div class="byline">Written by Sam Rivera</div>
      <div class="post-body">
        <p>{0}</p>
        <p>{1}</p>
        <figure>
          <img src="/img/chart.png" alt="Build time chart">
          <figcaption>Build times before and after.</figcaption>
        </figure>
        <p>{2}</p>
        <table>
          <thead><tr><th>Step</th><th>Before</th><th>After</th></tr></thead>
          <tbody>
            <tr><td>Compile</td><td>22 min</td><td>9 min</td></tr>
            <tr><td>Unit tests</td><td>12 min</td><td>6 min</td></tr>
          </tbody>
        </table>
        <p>{3}</p>
        <div class="share-buttons"><a href="https://social.example/share">Post this</a></div>
      </div>
    </article>
    <aside class="sidebar">
      <h3>Related posts</h3>
      <ul><li><a href="/blog/faster-tests">Faster tests</a></li></ul>
    </aside>
    <section class="comments" id="comments">
      <p>Great write-up, thanks for sharing, we are trying the same thing.</p>
    </section>
  </main>
  <footer class="site-footer">Copyright Acme Corporation</footer>
</body>
</html>
""".format(*PARAGRAPHS)


@pytest.fixture
def article():
    return Readability(PAGE_URI, PAGE_HTML).parse()


def test_page_is_probably_readerable():
    assert is_probably_readerable(parse_html(PAGE_HTML))


def test_metadata(article):
    assert article.title == "How We Cut Build Times In Half"
    assert article.byline == "Written by Sam Rivera"
    assert article.site_name == "Acme Engineering"
    assert article.published_time == "2024-02-10T09:00:00Z"
    assert article.excerpt == "Notes on caching, sharding and measuring our builds."
    assert article.lang == "en"
    assert article.charset == "utf-8"


def test_article_body_is_kept(article):
    for paragraph in PARAGRAPHS:
        assert " ".join(paragraph.split()) in article.text_content

    assert "<table>" in article.content
    assert "Unit tests" in article.text_content
    assert "<figure>" in article.content
    assert 'src="https://blog.acme.example/img/chart.png"' in article.content


def test_clutter_is_removed(article):
    text = article.text_content

    assert "Post this" not in text
    assert "Related posts" not in text
    assert "Great write-up" not in text
    assert "Copyright Acme" not in text
    assert "window.analytics" not in text
    assert 'class="post' not in article.content


def test_second_pass_does_not_shrink_content(article):
    second = Readability(PAGE_URI, article.content, ReadabilityOptions(char_threshold=0)).parse()

    assert second.length >= article.length


def test_async_parse_gives_same_article(article):
    import asyncio

    async def run():
        return await Readability(PAGE_URI, PAGE_HTML).parse_async()

    result = asyncio.run(run())

    assert result.content == article.content
