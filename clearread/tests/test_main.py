import io
import json

import pytest

from clearread.main import format_article, main, parse_args
from clearread.models import Article, ArticleMetadata

PARAGRAPH = (
    "Community gardens across the valley reported record harvests this season, with tomatoes, "
    "beans, squash and peppers filling the shared stalls every weekend until the first frost. "
)

ARTICLE_HTML = f"""
<html><head><title>Gardens Report Record Harvest Season | Valley News</title></head>
<body><div class="post">
  <p>{PARAGRAPH}</p><p>{PARAGRAPH}</p><p>{PARAGRAPH}</p><p>{PARAGRAPH}</p>
</div></body></html>
"""


@pytest.fixture
def article_file(tmp_path):
    path = tmp_path / "article.html"
    path.write_text(ARTICLE_HTML, encoding="utf-8")
    return str(path)


def test_parse_args_defaults():
    args = parse_args(["https://example.com/post"])

    assert args.url == "https://example.com/post"
    assert args.file is None
    assert args.format == "html"
    assert args.char_threshold is None
    assert args.log_level is None


def test_parse_args_rejects_unknown_format():
    with pytest.raises(SystemExit):
        parse_args(["https://example.com/post", "--format", "pdf"])


def test_main_prints_text(article_file, capsys):
    exit_code = main(["https://example.com/post", "--file", article_file, "--format", "text"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "record harvests this season" in out
    assert "<p>" not in out


def test_main_prints_json(article_file, capsys):
    exit_code = main(["https://example.com/post", "--file", article_file, "--format", "json"])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert data["title"] == "Gardens Report Record Harvest Season"
    assert data["uri"] == "https://example.com/post"
    assert data["length"] > 0


def test_main_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(ARTICLE_HTML))

    exit_code = main(["https://example.com/post", "--format", "metadata"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Title:          Gardens Report Record Harvest Season" in out


def test_main_without_article_exits_with_2(tmp_path, capsys):
    path = tmp_path / "empty.html"
    path.write_text("<html><body><img src='a.jpg'></body></html>", encoding="utf-8")

    exit_code = main(["https://example.com/post", "--file", str(path)])

    assert exit_code == 2
    assert "No article content extracted." in capsys.readouterr().out


def test_main_missing_file_exits_with_1(tmp_path):
    assert main(["https://example.com/post", "--file", str(tmp_path / "missing.html")]) == 1


def test_main_interrupted(monkeypatch, article_file):
    def interrupt(*args, **kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr("clearread.main.Readability.parse", interrupt)

    assert main(["https://example.com/post", "--file", article_file]) == 130


def test_format_all_without_content():
    article = Article(uri="https://example.com", metadata=ArticleMetadata(title="Nothing"))

    output = format_article(article, "all")

    assert "Title:          Nothing" in output
    assert "Length:         -1 characters" in output
    assert output.count("No article content extracted.") == 2
