from pathlib import Path

from cssg.config import load_config
from cssg.pages import Page, discover_pages, extract_frontmatter, render_markdown
from cssg.templates import TemplateEngine


def make_project(tmp_path: Path):
    (tmp_path / "src" / "layouts").mkdir(parents=True)
    (tmp_path / "src" / "pages" / "_partials").mkdir(parents=True)
    (tmp_path / "cssg.yaml").write_text("site:\n  title: Demo\n", encoding="utf-8")
    (tmp_path / "src" / "layouts" / "main.jinja").write_text(
        "<title>{{ site.title }}</title><body>{{ body }}{{ scripts }}</body>",
        encoding="utf-8",
    )
    return load_config(tmp_path)


def make_page(config, rel: str, body: str, source_type="jinja", **frontmatter):
    return Page(
        path=config.pages_dir / rel,
        rel_path=Path(rel),
        body=body,
        source_type=source_type,
        frontmatter=frontmatter,
    )


def test_extract_frontmatter():
    data, body = extract_frontmatter("---\ntitle: Hi\nlayout: post\n---\n<p>x</p>")
    assert data == {"title": "Hi", "layout": "post"}
    assert body == "<p>x</p>"


def test_extract_frontmatter_missing_or_invalid():
    assert extract_frontmatter("<p>x</p>") == ({}, "<p>x</p>")
    text = "---\n- a list\n---\nbody"
    assert extract_frontmatter(text) == ({}, text)


def test_discover_pages_skips_partials(tmp_path):
    config = make_project(tmp_path)
    pages_dir = config.pages_dir
    (pages_dir / "index.jinja").write_text("home", encoding="utf-8")
    (pages_dir / "blog").mkdir()
    (pages_dir / "blog" / "post.md").write_text("# Post", encoding="utf-8")
    (pages_dir / "_partials" / "nav.jinja").write_text("nav", encoding="utf-8")
    (pages_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    pages = discover_pages(pages_dir)
    assert [p.rel_path.as_posix() for p in pages] == ["blog/post.md", "index.jinja"]
    assert pages[0].source_type == "markdown"
    assert pages[0].url == "/blog/post.html"
    assert pages[1].output_rel_path == Path("index.html")
    assert discover_pages(tmp_path / "missing") == []


def test_page_layout_default():
    page = Page(Path("a.jinja"), Path("a.jinja"), "", "jinja")
    assert page.layout == "main"
    page.frontmatter["layout"] = "post"
    assert page.layout == "post"


def test_render_markdown():
    html = render_markdown("# Title\n\n~~gone~~")
    assert "<h1>Title</h1>" in html
    assert "<del>gone</del>" in html


def test_render_page_wraps_body_in_layout(tmp_path):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {"nav": ["a", "b"]})
    page = make_page(config, "index.jinja", "{% for item in nav %}<i>{{ item }}</i>{% endfor %}")
    html = engine.render_page(page)
    assert html == "<title>Demo</title><body><i>a</i><i>b</i></body>"


def test_render_page_escapes_context_values(tmp_path):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {})
    page = make_page(config, "index.jinja", "{{ title }}", title="<b>")
    assert "&lt;b&gt;" in engine.render_page(page)


def test_render_markdown_page(tmp_path):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {})
    page = make_page(config, "about.md", "# About", source_type="markdown")
    assert "<h1>About</h1>" in engine.render_page(page)


def test_render_page_script_tag(tmp_path):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {}, base_path="/docs")
    page = make_page(config, "index.jinja", "x", script="main.js")
    html = engine.render_page(page)
    assert '<script src="/docs/assets/js/main.js" type="module"></script>' in html


def test_render_page_without_layout(tmp_path, capsys):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {})
    page = make_page(config, "index.jinja", "<p>bare</p>", layout="missing")
    assert engine.render_page(page) == "<p>bare</p>"
    assert "Layout 'missing' not found" in capsys.readouterr().err


def test_layout_lookup_accepts_html_extension(tmp_path):
    config = make_project(tmp_path)
    (config.layouts_dir / "post.html").write_text("<article>{{ body }}</article>", encoding="utf-8")
    engine = TemplateEngine(config, {})
    page = make_page(config, "p.jinja", "x", layout="post")
    assert engine.render_page(page) == "<article>x</article>"


def test_url_for(tmp_path):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {}, base_path="/docs")
    assert engine.url_for("/about.html") == "/docs/about.html"
    assert engine.url_for("https://example.com/x") == "https://example.com/x"
    plain = TemplateEngine(config, {})
    assert plain.url_for("about.html") == "/about.html"


def test_pages_can_include_partials(tmp_path):
    config = make_project(tmp_path)
    (config.pages_dir / "_partials" / "hello.jinja").write_text("hello {{ name }}", encoding="utf-8")
    engine = TemplateEngine(config, {})
    page = make_page(config, "index.jinja", "{% include '_partials/hello.jinja' %}", name="you")
    assert "hello you" in engine.render_page(page)


def test_render_string(tmp_path):
    config = make_project(tmp_path)
    engine = TemplateEngine(config, {})
    assert engine.render_string("{{ site.title }}!", {}) == "Demo!"
