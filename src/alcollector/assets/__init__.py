"""
alcollector.assets - Asset Extractor

Unity bundle scanning (UnityPy) and image encoding (Pillow).
"""

from alcollector.assets.extractor import (
    AssetExtractor,
    AttachStats,
    SpriteBlob,
    DEFAULT_SUBFOLDER,
    DEFAULT_IMAGE_FORMAT,
)

__all__ = [
    "AssetExtractor",
    "AttachStats",
    "SpriteBlob",
    "DEFAULT_SUBFOLDER",
    "DEFAULT_IMAGE_FORMAT",
]
