from weblearn.domain.visited_tracker import VisitedTracker


def test_url_not_visited_initially():
    tracker = VisitedTracker()
    assert not tracker.is_visited("https://example.com")


def test_marking_url_makes_it_visited():
    tracker = VisitedTracker()
    tracker.mark("https://example.com")
    assert tracker.is_visited("https://example.com")
    assert not tracker.is_visited("https://other.com")


def test_marking_same_url_twice_is_idempotent():
    tracker = VisitedTracker()
    tracker.mark("https://example.com")
    tracker.mark("https://example.com")
    assert len(tracker) == 1


def test_surrounding_whitespace_ignored():
    tracker = VisitedTracker()
    tracker.mark("  https://example.com/a\n")
    assert tracker.is_visited("https://example.com/a")
