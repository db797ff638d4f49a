"""
Unit tests for the host pipeline collaborators.
"""

from azure_reader.core.blobs import (
    PostRewriteEvent,
    PostRewriteHooks,
    ProcessingDirectives,
    RedirectSink,
)


def _event(path: str = "/store/c/a.png", query=None) -> PostRewriteEvent:
    return PostRewriteEvent(virtual_path=path, query=query or {}, response=RedirectSink())


class TestPostRewriteHooks:
    """Tests for subscribing to and firing the post-rewrite hook."""

    def test_subscribers_run_in_order(self):
        hooks = PostRewriteHooks()
        calls = []
        hooks.subscribe(lambda e: calls.append("first"))
        hooks.subscribe(lambda e: calls.append("second"))

        hooks.fire(_event())

        assert calls == ["first", "second"]

    def test_subscribing_twice_runs_once(self):
        hooks = PostRewriteHooks()
        calls = []

        def handler(event):
            calls.append(event.virtual_path)

        hooks.subscribe(handler)
        hooks.subscribe(handler)
        hooks.fire(_event())

        assert calls == ["/store/c/a.png"]
        assert len(hooks) == 1

    def test_unsubscribe_removes_handler(self):
        hooks = PostRewriteHooks()
        calls = []

        def handler(event):
            calls.append(event)

        hooks.subscribe(handler)
        hooks.unsubscribe(handler)
        hooks.fire(_event())

        assert calls == []
        assert handler not in hooks

    def test_unsubscribing_unknown_handler_is_a_no_op(self):
        hooks = PostRewriteHooks()

        hooks.unsubscribe(lambda e: None)

        assert len(hooks) == 0

    def test_handler_can_unsubscribe_while_firing(self):
        hooks = PostRewriteHooks()
        calls = []

        def once(event):
            calls.append("once")
            hooks.unsubscribe(once)

        hooks.subscribe(once)
        hooks.fire(_event())
        hooks.fire(_event())

        assert calls == ["once"]

    def test_registries_are_independent(self):
        """Two hosts never share subscribers."""
        first, second = PostRewriteHooks(), PostRewriteHooks()

        def handler(event):
            pass

        first.subscribe(handler)

        assert handler in first
        assert handler not in second


class TestRedirectSink:
    """Tests for recording redirects."""

    def test_starts_without_redirect(self):
        sink = RedirectSink()

        assert not sink.redirected
        assert sink.location is None

    def test_records_location(self):
        sink = RedirectSink()
        sink.redirect("https://svc.example/acct/c/a.png")

        assert sink.redirected
        assert sink.location == "https://svc.example/acct/c/a.png"


class TestProcessingDirectives:
    """Tests for recognizing processing directives in query strings."""

    def test_empty_query_has_no_directive(self):
        directives = ProcessingDirectives()

        assert not directives.has_processing_directive({})
        assert not directives.has_processing_directive(None)

    def test_width_is_a_directive(self):
        assert ProcessingDirectives().has_processing_directive({"width": "100"})

    def test_keys_are_case_insensitive(self):
        assert ProcessingDirectives().has_processing_directive({"Width": "100"})

    def test_unrelated_keys_are_not_directives(self):
        """Cache busters and tracking parameters don't need processing."""
        assert not ProcessingDirectives().has_processing_directive({"v": "3", "utm_source": "mail"})

    def test_custom_directive_set(self):
        directives = ProcessingDirectives(["thumb", " Watermark "])

        assert directives.directives == frozenset({"thumb", "watermark"})
        assert directives.has_processing_directive({"watermark": "1"})
        assert not directives.has_processing_directive({"width": "100"})
