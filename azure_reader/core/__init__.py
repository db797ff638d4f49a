"""
Core logic for serving blobs as virtual files.

This module is framework-agnostic - it doesn't import FastAPI or the
Azure SDK. The reader talks to storage through a protocol, so it can be
tested against an in-memory store and hosted by any pipeline that
provides the hook, directive and metrics interfaces.
"""
