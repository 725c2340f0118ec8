from weblearn.services.html_text_extractor import DEFAULT_TITLE, HtmlTextExtractor


def test_extract_title_and_strips_chrome():
    html = """
    <html><head><title>  Python  Guide </title><style>.x{}</style></head>
    <body>
      <header>Site header</header><nav>Home About</nav>
      <script>var tracking = 1;</script>
      <p>Python is a programming language.</p>
      <footer>Copyright</footer>
    </body></html>
    """
    page = HtmlTextExtractor().extract(html)
    assert page.title == 'Python Guide'
    assert page.text == 'Python is a programming language.'


def test_missing_title_defaults():
    assert HtmlTextExtractor().extract_title('<p>no title</p>') == DEFAULT_TITLE
    assert HtmlTextExtractor().extract('').title == DEFAULT_TITLE


def test_prefers_largest_content_region():
    html = """
    <body>
      <div>Sidebar noise that should be ignored</div>
      <article>Short teaser</article>
      <main>The main region holds the real article body with many more words.</main>
    </body>
    """
    page = HtmlTextExtractor().extract(html)
    assert page.text == 'The main region holds the real article body with many more words.'


def test_wikipedia_and_github_regions():
    wiki = '<div>chrome</div><div id="mw-content-text"><p>Article text</p></div>'
    gh = '<div>chrome</div><div class="markdown-body"><p>Readme text</p></div>'
    assert HtmlTextExtractor().extract(wiki).text == 'Article text'
    assert HtmlTextExtractor().extract(gh).text == 'Readme text'


def test_empty_candidate_falls_back_to_document():
    html = '<body><main></main><p>Body text</p></body>'
    assert HtmlTextExtractor().extract(html).text == 'Body text'


def test_title_source_used_for_truncated_body():
    full = '<html><head><title>Full Title</title></head><body><p>text</p></body></html>'
    page = HtmlTextExtractor().extract('<p>text</p>', title_source=full)
    assert page.title == 'Full Title'
    assert page.text == 'text'
