"""Test helpers: a scripted Messages upstream that runs in-process."""

from .fake_upstream import FakeMessagesUpstream, UpstreamResponse

__all__ = ["FakeMessagesUpstream", "UpstreamResponse"]
