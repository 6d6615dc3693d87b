"""Clients for remote manifest conversion services."""

from .swift import SwiftManifestClient

__all__ = [
    "SwiftManifestClient",
]
