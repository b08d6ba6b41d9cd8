"""Parcel watch - posts new scene deployments on the parcel grid."""

__version__ = "0.1.0"
