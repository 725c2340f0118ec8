import json
from unittest.mock import Mock

import requests

from weblearn.domain.crawl_options import CrawlOptions
from weblearn.domain.http_response import HttpResponse
from weblearn.exceptions import HttpFetchError
from weblearn.services.site_handlers import (
    GitHubRepoHandler,
    WikipediaHandler,
    clean_readme_markdown,
    extract_wikipedia_title,
    parse_github_repo,
)

LONG_TEXT = ("Python is a high-level general-purpose programming language whose design "
             "philosophy emphasizes code readability with the use of significant indentation. ") * 3


def _json_response(payload, status=200):
    return HttpResponse(status, json.dumps(payload), 'application/json')


def test_extract_wikipedia_title():
    assert extract_wikipedia_title('https://en.wikipedia.org/wiki/Python_(programming_language)') == 'Python (programming language)'
    assert extract_wikipedia_title('https://en.wikipedia.org/wiki/Caf%C3%A9') == 'Café'
    assert extract_wikipedia_title('https://en.wikipedia.org/w/index.php?title=X') is None


def test_wikipedia_matches_language_hosts():
    handler = WikipediaHandler(http_service=Mock())
    assert handler.matches('https://de.wikipedia.org/wiki/Berlin')
    assert handler.matches('https://wikipedia.org/wiki/Berlin')
    assert not handler.matches('https://notwikipedia.org/wiki/Berlin')


def test_wikipedia_summary_success():
    http = Mock()
    http.fetch.return_value = _json_response({'title': 'Python (programming language)', 'extract': LONG_TEXT})
    handler = WikipediaHandler(http_service=http)

    result = handler.fetch('https://en.wikipedia.org/wiki/Python_(programming_language)', CrawlOptions())

    assert result.ok
    assert result.title == 'Python (programming language)'
    assert result.char_count == len(LONG_TEXT.strip())
    called_url = http.fetch.call_args[0][0]
    assert called_url == 'https://en.wikipedia.org/api/rest_v1/page/summary/Python_%28programming_language%29'


def test_wikipedia_falls_back_to_extracts_api():
    http = Mock()
    http.fetch.side_effect = [
        _json_response({'title': 'Berlin', 'extract': 'Too short'}),
        _json_response({'query': {'pages': {'1': {'title': 'Berlin', 'extract': LONG_TEXT}}}}),
    ]
    handler = WikipediaHandler(http_service=http)

    result = handler.fetch('https://de.wikipedia.org/wiki/Berlin', CrawlOptions())

    assert result.ok
    assert result.title == 'Berlin'
    second_call = http.fetch.call_args_list[1]
    assert second_call[0][0] == 'https://de.wikipedia.org/w/api.php'
    assert second_call[1]['params']['prop'] == 'extracts'


def test_wikipedia_returns_none_when_apis_fail():
    http = Mock()
    http.fetch.side_effect = [
        HttpFetchError('https://en.wikipedia.org/api', requests.exceptions.ConnectionError('down')),
        HttpResponse(500, 'error'),
    ]
    handler = WikipediaHandler(http_service=http)
    assert handler.fetch('https://en.wikipedia.org/wiki/Python', CrawlOptions()) is None


def test_parse_github_repo():
    assert parse_github_repo('https://github.com/psf/requests') == ('psf', 'requests')
    assert parse_github_repo('https://github.com/psf/requests.git') == ('psf', 'requests')
    assert parse_github_repo('https://github.com/psf/requests/tree/main/docs') == ('psf', 'requests')
    assert parse_github_repo('https://github.com/psf') is None
    assert parse_github_repo('https://github.com/settings/profile') is None
    assert parse_github_repo('https://gitlab.com/psf/requests') is None


def test_clean_readme_markdown():
    md = "# Title\n\n![logo](logo.png)\n\n```python\nimport x\n```\n\nSee [the docs](https://docs.example.com) for **more**."
    assert clean_readme_markdown(md) == 'Title See the docs for more.'
    assert clean_readme_markdown('   ') == ''


def test_github_handler_builds_summary():
    http = Mock()
    http.fetch.side_effect = [
        _json_response({
            'description': 'A simple, yet elegant, HTTP library',
            'language': 'Python',
            'topics': ['http', 'client'],
            'stargazers_count': 50000,
        }),
        HttpResponse(200, '# Requests\n\n' + LONG_TEXT),
    ]
    handler = GitHubRepoHandler(http_service=http, token='secret')

    result = handler.fetch('https://github.com/psf/requests', CrawlOptions())

    assert result.ok
    assert result.title == 'psf/requests (GitHub Repository)'
    assert 'Primary language: Python.' in result.text
    assert 'Stars: 50000.' in result.text
    assert 'README summary:' in result.text
    repo_call, readme_call = http.fetch.call_args_list
    assert repo_call[0][0] == 'https://api.github.com/repos/psf/requests'
    assert repo_call[1]['headers']['Authorization'] == 'Bearer secret'
    assert readme_call[0][0] == 'https://api.github.com/repos/psf/requests/readme'
    assert readme_call[1]['headers']['Accept'] == 'application/vnd.github.raw+json'


def test_github_readme_decoded_from_raw_bytes():
    http = Mock()
    http.fetch.side_effect = [
        _json_response({'description': 'HTTP for Humans', 'language': 'Python'}),
        HttpResponse(200, '', 'application/vnd.github.raw', ('# Requests\n\n' + LONG_TEXT).encode('utf-8')),
    ]
    result = GitHubRepoHandler(http_service=http).fetch('https://github.com/psf/requests', CrawlOptions())
    assert 'README summary:' in result.text


def test_github_handler_none_when_metadata_unavailable():
    http = Mock()
    http.fetch.return_value = HttpResponse(404, 'not found')
    handler = GitHubRepoHandler(http_service=http)
    assert handler.fetch('https://github.com/psf/missing', CrawlOptions()) is None
