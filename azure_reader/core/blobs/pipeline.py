"""
Collaboration points between the blob reader and the host pipeline.

The host owns request routing. The reader only needs three things from it:
- a post-rewrite hook it can subscribe to (PostRewriteHooks)
- a way to tell whether a query asks for processed output (ProcessingDirectives)
- somewhere to send a redirect (ResponseSink)

The reader gets these passed in explicitly. There is no global registry,
so two apps (or two tests) never see each other's subscribers.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Optional, Protocol


# Query keys that ask the pipeline to transform an image instead of
# serving the stored bytes verbatim.
DEFAULT_PROCESSING_DIRECTIVES = frozenset({
    "width", "height", "w", "h",
    "maxwidth", "maxheight",
    "mode", "scale", "crop", "anchor",
    "format", "quality",
    "rotate", "flip", "sflip",
    "bgcolor", "trim.threshold",
    "zoom", "dpr",
})


class ResponseSink(Protocol):
    """Where a hook subscriber can send the client elsewhere."""

    def redirect(self, url: str) -> None:
        ...


@dataclass
class PostRewriteEvent:
    """
    A request after the host has mapped it to a virtual path.

    Subscribers may redirect through the response sink; the host decides
    what to do with that once every subscriber has run.
    """
    virtual_path: str
    query: Mapping[str, str]
    response: ResponseSink


PostRewriteHandler = Callable[[PostRewriteEvent], None]


class RedirectSink:
    """ResponseSink that records the redirect for the host to act on."""

    def __init__(self) -> None:
        self.location: Optional[str] = None

    @property
    def redirected(self) -> bool:
        return self.location is not None

    def redirect(self, url: str) -> None:
        self.location = url


class PostRewriteHooks:
    """
    Subscription point for the post-rewrite hook.

    subscribe/unsubscribe are symmetric. Unsubscribing something that was
    never subscribed does nothing, so teardown can always run.
    """

    def __init__(self) -> None:
        self._handlers: list[PostRewriteHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, handler: object) -> bool:
        return handler in self._handlers

    def subscribe(self, handler: PostRewriteHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: PostRewriteHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def fire(self, event: PostRewriteEvent) -> None:
        """Run every subscriber in subscription order."""
        for handler in list(self._handlers):
            handler(event)


class ProcessingDirectives:
    """
    Decides whether a query string asks for processed output.

    A request with none of these keys wants the stored bytes verbatim,
    which is what makes the redirect shortcut safe.
    """

    def __init__(self, directives: Iterable[str] = DEFAULT_PROCESSING_DIRECTIVES) -> None:
        self._directives = frozenset(d.strip().lower() for d in directives if d.strip())

    @property
    def directives(self) -> frozenset[str]:
        return self._directives

    def has_processing_directive(self, query: Optional[Mapping[str, str]]) -> bool:
        if not query:
            return False
        return any(key.lower() in self._directives for key in query.keys())
