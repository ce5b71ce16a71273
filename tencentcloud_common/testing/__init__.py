#  SPDX-License-Identifier: Apache-2.0

"""Shared utilities for tests of code built on tencentcloud-common."""

from .mockhttp import MockHTTPClient, MockHTTPClientError

__all__ = (
    "MockHTTPClient",
    "MockHTTPClientError",
)
