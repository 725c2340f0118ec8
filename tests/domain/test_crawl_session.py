"""Tests for CrawlSession queue bookkeeping."""
import threading

from weblearn.domain import Context, CrawlOptions, CrawlQueueItem, CrawlSession, Failure


def _item(url, depth=0):
    return CrawlQueueItem(url=url, depth=depth, root_origin="https://example.com:443")


def test_enqueue_dedups_pending_and_visited():
    session = CrawlSession(CrawlOptions())
    assert session.enqueue(_item("https://example.com/a"))
    assert not session.enqueue(_item(" https://example.com/a "))

    item = session.dequeue()
    session.mark_visited(item.url)
    assert not session.enqueue(_item("https://example.com/a", depth=1))
    assert session.dequeue() is None


def test_recursive_admission_counts_dequeued_and_queued():
    session = CrawlSession(CrawlOptions())
    session.enqueue(_item("https://example.com/", 0))
    session.enqueue(_item("https://example.com/a", 1))
    session.enqueue(_item("https://example.com/b", 1))
    assert session.recursive_admitted == 2

    session.dequeue()
    session.dequeue()
    assert session.recursive_queued == 1
    assert session.recursive_dequeued == 1
    assert session.recursive_admitted == 2


def test_record_context_and_failure_counters():
    session = CrawlSession(CrawlOptions())
    session.record_context(Context(url="u0", title="t", text="x", depth=0))
    session.record_context(Context(url="u1", title="t", text="x", depth=2))
    session.record_failure(Failure(url="u2", reason="http_500"))
    assert session.processed == 2
    assert session.recursive_processed == 1
    assert session.failed == 1


def test_stop_event_shared_with_caller():
    stop_event = threading.Event()
    session = CrawlSession(CrawlOptions(), stop_event=stop_event)
    assert not session.is_stopped()
    stop_event.set()
    assert session.is_stopped()
