"""
Virtual path resolution.

Maps a virtual path under the mount prefix to the remote blob it names:

    /azure/container/img.png  ->  https://acct.blob.core.windows.net/container/img.png

Everything here is a pure function of its arguments so the redirect
shortcut and the storage lookups agree on where a path points.
"""

from urllib.parse import quote

from .models import PATH_SEPARATORS, ObjectReference


def belongs(prefix: str, virtual_path: str) -> bool:
    """
    Is this virtual path under the mount prefix?

    Matching ignores case, and the prefix must end at a separator so that
    /azure doesn't claim /azurestatic/logo.png.
    """
    if len(virtual_path) < len(prefix):
        return False
    if virtual_path[: len(prefix)].lower() != prefix.lower():
        return False
    return len(virtual_path) == len(prefix) or virtual_path[len(prefix)] in PATH_SEPARATORS


def strip_prefix(prefix: str, virtual_path: str) -> str:
    """Remove the mount prefix from the front of a virtual path."""
    if virtual_path[: len(prefix)].lower() == prefix.lower():
        return virtual_path[len(prefix):]
    return virtual_path


def resolve_object_reference(prefix: str, virtual_path: str, base_endpoint: str) -> ObjectReference:
    """Build the reference to the blob a virtual path names."""
    sub_path = strip_prefix(prefix, virtual_path).strip(PATH_SEPARATORS)
    return ObjectReference(
        base_endpoint=base_endpoint.rstrip(PATH_SEPARATORS),
        object_path=sub_path,
    )


def resolve_object_url(prefix: str, virtual_path: str, base_endpoint: str) -> str:
    """Absolute URL of the blob a virtual path names."""
    return resolve_object_reference(prefix, virtual_path, base_endpoint).url


def redirect_url(prefix: str, virtual_path: str, public_endpoint: str) -> str:
    """
    Public URL to send a client to for a virtual path.

    public_endpoint is slash-terminated by bootstrap; only the leading
    separators of the remainder are trimmed, so a trailing slash the
    client asked for is kept.

    virtual_path is the decoded request path. The remainder is
    percent-encoded again so "#", "?" and "%" in a blob name stay part
    of the name instead of turning into a fragment or query.
    """
    remainder = strip_prefix(prefix, virtual_path).lstrip(PATH_SEPARATORS)
    return public_endpoint + quote(remainder, safe="/")
