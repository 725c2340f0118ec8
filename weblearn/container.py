"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from weblearn.domain.crawl_options import CrawlOptions, SearchOptions
from weblearn.services.acquisition_service import WebAcquisitionService
from weblearn.services.content_fetcher import ContentFetcher
from weblearn.services.crawl_executor import CrawlExecutor
from weblearn.services.crawl_policy import CrawlPolicy
from weblearn.services.document_extractor import ChatParserTier, DocumentExtractionChain, HostedOcrTier, LocalDocumentTier
from weblearn.services.html_text_extractor import HtmlTextExtractor
from weblearn.services.http_service import HttpService
from weblearn.services.link_extractor import LinkExtractor
from weblearn.services.search_service import DuckDuckGoLiteProvider, WebSearchService, WikipediaOpenSearchProvider
from weblearn.services.site_handlers import GitHubRepoHandler, WikipediaHandler
from weblearn.services.text_quality import TextQualityFilter
from weblearn.services.url_validator import UrlSafetyValidator
from weblearn import config as env


# Environment variables used by the container (read via `weblearn.config` helpers).
#
# Notes:
# - Types are enforced by the helper used (`get_int_env`, `get_limit_env`, etc.).
# - Defaults shown here are the effective defaults used when the env var is unset.
# - "Limit" values accept 0, negatives, "unlimited", "infinity", "inf" or "none"
#   to mean unbounded, which is stored as None.
# - These are injected into services via `config = providers.Configuration(default=ENV)`.
#
# USER_AGENT (str, default: "WebLearnBot/1.0 (+learning assistant)")
#   User-Agent header for outbound fetches and API calls.
#
# WEB_RECURSE_DEPTH (int, default: 0)
#   How many link hops beyond the seed pages are followed.
#
# WEB_MAX_PAGES (limit, default: unlimited)
#   Maximum number of successful contexts per crawl.
#
# WEB_MAX_HREFS_PER_PAGE (limit, default: 12)
#   Outbound links harvested from each HTML page.
#
# WEB_MAX_SEED_URLS (limit, default: 3)
#   Seeds kept after de-duplication.
#
# WEB_MAX_RECURSIVE_URLS (limit, default: 20)
#   Non-seed URLs admitted to the crawl queue.
#
# WEB_SAME_ORIGIN_ONLY (bool, default: true)
#   Only follow links sharing scheme, host and port with their seed.
#
# WEB_SUMMARY_MAX_CHARS (limit, default: unlimited)
#   Cap on the summarized text kept per HTML page.
#
# WEB_SCRAPE_MAX_CHARS (limit, default: unlimited)
#   Cap on the raw HTML body examined per page.
#
# WEB_FETCH_TIMEOUT_MS (int milliseconds, default: 12000)
#   Per-attempt fetch timeout (floored at 1000).
#
# WEB_FETCH_RETRIES (int, default: 2)
#   Total fetch attempts per URL (at least 1).
#
# HTTP_TIMEOUT_SECONDS (float, default: 10)
#   Deadline for outbound requests that carry no timeout of their own.
#
# WEB_SEARCH_ENABLED (bool, default: true)
#   Whether a message without URLs is resolved through web search.
#
# WEB_SEARCH_MAX_RESULTS (int, default: 4)
#   URLs kept from a search (at least 1).
#
# WEB_DOCUMENT_MAX_CHARS (limit, default: 1600)
#   Cap on text kept from PDF / Office documents.
#
# DOCUMENT_AI_API_KEY (str | optional)
#   Bearer key for the hosted OCR and chat-parser tiers. Unset skips both.
#
# DOCUMENT_AI_BASE_URL (str, default: "https://ai.hackclub.com/proxy/v1")
#   Base URL of the hosted document endpoints.
#
# DOCUMENT_AI_MODEL (str, default: "qwen/qwen3-32b")
#   Model name sent to the chat-completions parser.
#
# GITHUB_TOKEN (str | optional)
#   Token for GitHub API calls made by the repository handler.
#
# API_HOST (str, default: "0.0.0.0") / API_PORT (int, default: 8000)
#   Bind address for `run.py serve`.
#
# LOG_LEVEL (str, default: "INFO")
#   Root log level configured by `run.py`.
ENV = {
    "USER_AGENT": env.get_str_env("USER_AGENT", env.DEFAULT_USER_AGENT),
    "WEB_RECURSE_DEPTH": env.get_int_env("WEB_RECURSE_DEPTH", 0),
    "WEB_MAX_PAGES": env.get_limit_env("WEB_MAX_PAGES", None),
    "WEB_MAX_HREFS_PER_PAGE": env.get_limit_env("WEB_MAX_HREFS_PER_PAGE", 12),
    "WEB_MAX_SEED_URLS": env.get_limit_env("WEB_MAX_SEED_URLS", 3),
    "WEB_MAX_RECURSIVE_URLS": env.get_limit_env("WEB_MAX_RECURSIVE_URLS", 20),
    "WEB_SAME_ORIGIN_ONLY": env.get_bool_env("WEB_SAME_ORIGIN_ONLY", True),
    "WEB_SUMMARY_MAX_CHARS": env.get_limit_env("WEB_SUMMARY_MAX_CHARS", None),
    "WEB_SCRAPE_MAX_CHARS": env.get_limit_env("WEB_SCRAPE_MAX_CHARS", None),
    "WEB_FETCH_TIMEOUT_MS": env.get_int_env("WEB_FETCH_TIMEOUT_MS", 12_000),
    "WEB_FETCH_RETRIES": env.get_int_env("WEB_FETCH_RETRIES", 2),
    "HTTP_TIMEOUT_SECONDS": env.get_float_env("HTTP_TIMEOUT_SECONDS", 10.0),
    "WEB_SEARCH_ENABLED": env.get_bool_env("WEB_SEARCH_ENABLED", True),
    "WEB_SEARCH_MAX_RESULTS": env.get_int_env("WEB_SEARCH_MAX_RESULTS", 4),
    "WEB_DOCUMENT_MAX_CHARS": env.get_limit_env("WEB_DOCUMENT_MAX_CHARS", 1600),
    "DOCUMENT_AI_API_KEY": env.get_optional_str_env("DOCUMENT_AI_API_KEY"),
    "DOCUMENT_AI_BASE_URL": env.get_str_env("DOCUMENT_AI_BASE_URL", "https://ai.hackclub.com/proxy/v1"),
    "DOCUMENT_AI_MODEL": env.get_str_env("DOCUMENT_AI_MODEL", "qwen/qwen3-32b"),
    "GITHUB_TOKEN": env.get_optional_str_env("GITHUB_TOKEN"),
    "API_HOST": env.get_str_env("API_HOST", "0.0.0.0"),
    "API_PORT": env.get_int_env("API_PORT", 8000),
    "LOG_LEVEL": env.get_str_env("LOG_LEVEL", "INFO").strip().upper(),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the WebLearn acquisition engine."""

    # Configuration
    config = providers.Configuration(default=ENV)

    # Resolved defaults; per-call overrides are merged onto these
    crawl_defaults = providers.Singleton(
        CrawlOptions,
        recurse_depth=config.WEB_RECURSE_DEPTH.as_(int),
        max_pages=config.WEB_MAX_PAGES,
        max_hrefs_per_page=config.WEB_MAX_HREFS_PER_PAGE,
        max_seed_urls=config.WEB_MAX_SEED_URLS,
        max_recursive_urls=config.WEB_MAX_RECURSIVE_URLS,
        same_origin_only=config.WEB_SAME_ORIGIN_ONLY.as_(bool),
        summary_max_chars=config.WEB_SUMMARY_MAX_CHARS,
        scrape_max_chars=config.WEB_SCRAPE_MAX_CHARS,
        fetch_timeout_ms=config.WEB_FETCH_TIMEOUT_MS.as_(int),
        fetch_retries=config.WEB_FETCH_RETRIES.as_(int),
    )

    search_defaults = providers.Singleton(
        SearchOptions,
        enabled=config.WEB_SEARCH_ENABLED.as_(bool),
        max_results=config.WEB_SEARCH_MAX_RESULTS.as_(int),
    )

    # Services - Singleton instances
    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        timeout=config.HTTP_TIMEOUT_SECONDS.as_(float),
        http_client=providers.Object(requests.request),
    )

    url_validator = providers.Singleton(UrlSafetyValidator)

    quality_filter = providers.Singleton(TextQualityFilter)

    html_extractor = providers.Singleton(HtmlTextExtractor)

    link_extractor = providers.Singleton(LinkExtractor)

    wikipedia_handler = providers.Singleton(
        WikipediaHandler,
        http_service=http_service,
        quality_filter=quality_filter,
    )

    github_handler = providers.Singleton(
        GitHubRepoHandler,
        http_service=http_service,
        quality_filter=quality_filter,
        token=config.GITHUB_TOKEN,
    )

    ocr_tier = providers.Singleton(
        HostedOcrTier,
        http_service=http_service,
        api_key=config.DOCUMENT_AI_API_KEY,
        base_url=config.DOCUMENT_AI_BASE_URL.as_(str),
        quality_filter=quality_filter,
        max_chars=config.WEB_DOCUMENT_MAX_CHARS,
    )

    chat_parser_tier = providers.Singleton(
        ChatParserTier,
        http_service=http_service,
        api_key=config.DOCUMENT_AI_API_KEY,
        base_url=config.DOCUMENT_AI_BASE_URL.as_(str),
        model=config.DOCUMENT_AI_MODEL.as_(str),
        quality_filter=quality_filter,
        max_chars=config.WEB_DOCUMENT_MAX_CHARS,
    )

    local_document_tier = providers.Singleton(
        LocalDocumentTier,
        http_service=http_service,
        quality_filter=quality_filter,
        max_chars=config.WEB_DOCUMENT_MAX_CHARS,
    )

    document_chain = providers.Singleton(
        DocumentExtractionChain,
        tiers=providers.List(ocr_tier, chat_parser_tier, local_document_tier),
    )

    content_fetcher = providers.Singleton(
        ContentFetcher,
        http_service=http_service,
        validator=url_validator,
        document_chain=document_chain,
        site_handlers=providers.List(wikipedia_handler, github_handler),
        html_extractor=html_extractor,
        link_extractor=link_extractor,
        quality_filter=quality_filter,
    )

    crawl_policy = providers.Singleton(CrawlPolicy)

    crawl_executor = providers.Factory(
        CrawlExecutor,
        content_fetcher=content_fetcher,
        crawl_policy=crawl_policy,
        defaults=crawl_defaults,
    )

    search_service = providers.Singleton(
        WebSearchService,
        providers=providers.List(
            providers.Singleton(DuckDuckGoLiteProvider, http_service=http_service),
            providers.Singleton(WikipediaOpenSearchProvider, http_service=http_service),
        ),
        defaults=search_defaults,
    )

    acquisition_service = providers.Singleton(
        WebAcquisitionService,
        crawl_executor=crawl_executor,
        search_service=search_service,
        crawl_defaults=crawl_defaults,
        search_defaults=search_defaults,
    )
