"""
Tests for run.py main() with dependency injection.
"""
import json
from unittest.mock import Mock, patch

from run import main
from weblearn.container import Container
from weblearn.domain.crawl_result import CrawlResult, SearchResult


def test_main_serves_with_injected_container():
    container = Container()
    container.config.API_HOST.from_value("127.0.0.1")
    container.config.API_PORT.from_value(9001)
    container.acquisition_service.override(Mock())

    # Mock uvicorn.run to prevent server startup
    with patch('run.uvicorn.run') as mock_uvicorn:
        assert main([], container=container) == 0

    args, kwargs = mock_uvicorn.call_args
    assert kwargs == {"host": "127.0.0.1", "port": 9001}
    paths = {route.path for route in args[0].routes}
    assert "/web/acquire/stream" in paths
    assert "/systems/health" in paths


def test_serve_flags_override_config():
    container = Container()
    container.acquisition_service.override(Mock())
    with patch('run.uvicorn.run') as mock_uvicorn:
        main(["serve", "--host", "0.0.0.0", "--port", "8123"], container=container)
    assert mock_uvicorn.call_args[1] == {"host": "0.0.0.0", "port": 8123}


def test_crawl_command_prints_json(capsys):
    container = Container()
    service = Mock()
    service.crawl_from_urls.return_value = CrawlResult()
    container.acquisition_service.override(service)

    assert main(["crawl", "https://a.org", "--depth", "1", "--max-pages", "unlimited"], container=container) == 0

    service.crawl_from_urls.assert_called_once_with(["https://a.org"], {"recurse_depth": 1, "max_pages": "unlimited"})
    payload = json.loads(capsys.readouterr().out)
    assert payload["contexts"] == []


def test_search_command_exit_code(capsys):
    container = Container()
    service = Mock()
    service.search_web.return_value = SearchResult(ok=False, reason="no_results", provider="duckduckgo", query="zzqx")
    container.acquisition_service.override(service)

    assert main(["search", "what", "is", "zzqx"], container=container) == 1

    service.search_web.assert_called_once_with("what is zzqx", {})
    assert json.loads(capsys.readouterr().out)["reason"] == "no_results"
