"""Namespace and service-account resolution for delegate installs."""

from .resolver import ClusterIdentity, NamespaceResolver

__all__ = ["ClusterIdentity", "NamespaceResolver"]
