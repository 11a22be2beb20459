"""Blob storage disguised as lossless photos on a photo hosting service."""

__version__ = "0.1.0"
