"""Persistence of the asset manifest.

The manifest maps each logical asset path to the key currently serving it.
The worker reads it at request time to translate URLs into keys.
"""

import json
import logging
from pathlib import Path

from ..exceptions import ManifestError
from .scanner import AssetManifest

logger = logging.getLogger(__name__)


class ManifestStore:
    """Reads and writes an asset manifest as a JSON object."""

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: Location of the manifest file
        """
        self.path = path

    def load(self) -> AssetManifest:
        """Load the manifest.

        Returns:
            The stored manifest, or an empty one if the file does not exist

        Raises:
            ManifestError: If the file is not a JSON object of strings
        """
        if not self.path.exists():
            logger.debug(f"No manifest found at {self.path}")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid manifest {self.path}: {e}") from e
        except OSError as e:
            raise ManifestError(f"Failed to read manifest {self.path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise ManifestError(
                f"Invalid manifest {self.path}: expected an object of strings"
            )

        logger.debug(f"Loaded manifest with {len(data)} entries from {self.path}")
        return data

    def save(self, manifest: AssetManifest) -> None:
        """Write the manifest, creating parent directories as needed.

        Raises:
            ManifestError: If the file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2, sort_keys=True)
                f.write("\n")
        except OSError as e:
            raise ManifestError(f"Failed to write manifest {self.path}: {e}") from e

        logger.debug(f"Saved manifest with {len(manifest)} entries to {self.path}")
