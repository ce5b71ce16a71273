#  SPDX-License-Identifier: Apache-2.0
from .client import API_VERSION, CccClient

__all__ = ("API_VERSION", "CccClient")
