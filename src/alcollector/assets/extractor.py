"""
Asset Extractor

Pulls ship artwork out of Unity asset bundles and attaches it to the merged
dataset.

    <bundle_root>/shipmodels/<painting>      one bundle per painting

Each bundle is opened with UnityPy; every Texture2D whose lower-cased name
matches a wanted image key is decoded (UnityPy returns a Pillow image, already
the right way up) and re-encoded, WebP by default.

Naming: a skin's image key is its painting name lower-cased; a ship uses the
key of its default skin.

Bundles are scanned in a thread pool. Results are combined in sorted bundle
order and the first match per key wins, so the outcome does not depend on
scheduling. A bundle that fails to load or decode is logged and skipped.
"""

import io
import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import UnityPy
from PIL import Image

from alcollector.merge.engine import MergedDataset
from alcollector.resolver.models import EntityKey, EntityType

logger = logging.getLogger(__name__)


DEFAULT_SUBFOLDER = "shipmodels"
DEFAULT_IMAGE_FORMAT = "WEBP"
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class SpriteBlob:
    """An encoded image taken from a bundle."""
    name: str
    format: str
    width: int
    height: int
    data: bytes
    bundle: Path

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "format": self.format,
            "size": [self.width, self.height],
            "bytes": len(self.data),
            "bundle": self.bundle.name,
        }

    def __repr__(self):
        return f"SpriteBlob({self.name} {self.width}x{self.height} {self.format} from {self.bundle.name})"


@dataclass
class AttachStats:
    wanted: int = 0
    found: int = 0
    attached: int = 0
    missing: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wanted": self.wanted,
            "found": self.found,
            "attached": self.attached,
            "missing": list(self.missing),
        }


class AssetExtractor:
    """Finds, decodes and attaches images for a merged dataset."""

    def __init__(
        self,
        bundle_root: Path,
        subfolder: str = DEFAULT_SUBFOLDER,
        image_format: str = DEFAULT_IMAGE_FORMAT,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.bundle_root = Path(bundle_root)
        self.subfolder = subfolder
        self.image_format = image_format.upper()
        self.max_workers = max(1, max_workers)

    @property
    def bundle_dir(self) -> Path:
        return self.bundle_root / self.subfolder if self.subfolder else self.bundle_root

    def find_bundles(self) -> List[Path]:
        """Bundle files under the bundle directory, sorted by path."""
        folder = self.bundle_dir
        if not folder.is_dir():
            logger.warning(f"Bundle directory not found: {folder}")
            return []
        return sorted(p for p in folder.rglob("*") if p.is_file())

    @staticmethod
    def image_keys(dataset: MergedDataset) -> "OrderedDict[str, List[EntityKey]]":
        """
        Image key -> entity keys that use it, sorted by image key.

        Ships whose default skin is not in the dataset get no key.
        """
        keys: Dict[str, List[EntityKey]] = {}
        for key, entry in dataset.entries.items():
            if key.entity_type is EntityType.SKIN:
                keys.setdefault(entry.record.image_key.lower(), []).append(key)

        for key, entry in dataset.entries.items():
            if key.entity_type is not EntityType.SHIP:
                continue
            skin = dataset.get(EntityKey(EntityType.SKIN, entry.record.default_skin_id))
            if skin is None:
                logger.debug(f"{key}: default skin {entry.record.default_skin_id} not in dataset")
                continue
            keys.setdefault(skin.record.image_key.lower(), []).append(key)

        return OrderedDict(sorted(keys.items()))

    def _encode(self, name: str, image: Image.Image, bundle: Path) -> SpriteBlob:
        buf = io.BytesIO()
        image.save(buf, format=self.image_format)
        return SpriteBlob(
            name=name,
            format=self.image_format,
            width=image.width,
            height=image.height,
            data=buf.getvalue(),
            bundle=bundle,
        )

    def scan_bundle(self, path: Path, wanted: Set[str]) -> Dict[str, SpriteBlob]:
        """Encoded images of the wanted Texture2D objects in one bundle."""
        try:
            env = UnityPy.load(str(path))
        except Exception as e:
            logger.warning(f"Skipping unreadable bundle {path}: {e}")
            return {}

        found: Dict[str, SpriteBlob] = {}
        for obj in env.objects:
            if obj.type.name != "Texture2D":
                continue
            try:
                data = obj.read()
                name = getattr(data, "m_Name", None) or getattr(data, "name", "")
                key = name.lower()
                if key not in wanted or key in found:
                    continue
                found[key] = self._encode(name, data.image, path)
            except Exception as e:
                logger.warning(f"Skipping texture in {path}: {e}")
        return found

    def extract(self, wanted: Set[str], bundles: Optional[List[Path]] = None) -> Dict[str, SpriteBlob]:
        """Scan bundles in parallel; the first bundle in sorted order wins per key."""
        if bundles is None:
            bundles = self.find_bundles()
        if not wanted or not bundles:
            return {}

        logger.info(f"Scanning {len(bundles)} bundles for {len(wanted)} images "
                    f"({self.max_workers} workers)")
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            # map() yields in submission order, which is sorted bundle order
            results = list(pool.map(lambda p: self.scan_bundle(p, wanted), bundles))

        images: Dict[str, SpriteBlob] = {}
        for found in results:
            for key, blob in found.items():
                images.setdefault(key, blob)
        return images

    def attach(self, dataset: MergedDataset) -> AttachStats:
        """Extract the dataset's images and attach them to their entries."""
        keys = self.image_keys(dataset)
        images = self.extract(set(keys))

        stats = AttachStats(wanted=len(keys), found=len(images))
        for image_key, entity_keys in keys.items():
            blob = images.get(image_key)
            if blob is None:
                stats.missing.append(image_key)
                continue
            for entity_key in entity_keys:
                dataset.attach_image(entity_key, blob)
                stats.attached += 1

        logger.info(f"Images: {stats.found}/{stats.wanted} found, {stats.attached} attached")
        if stats.missing:
            logger.warning(f"{len(stats.missing)} images not found in any bundle")
        return stats
