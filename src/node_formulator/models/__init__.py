"""Data models for dependency trees and flattened resources."""

from __future__ import annotations

from .dependency_node import DependencyNode
from .resource import NativeAddon, ResourceRecord

__all__ = [
    "DependencyNode",
    "NativeAddon",
    "ResourceRecord",
]
