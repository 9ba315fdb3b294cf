"""Centralised path definitions for Letterpress.

The data directory mirrors the layout the desktop application keeps next to
its executable: a ``data`` folder for cache and list files, ``Templates`` for
body templates and ``Signatures`` (with an ``images`` subfolder) for sender
profiles.
"""

from pathlib import Path

# Base application directory
LETTERPRESS_DIR = Path.home() / ".letterpress"

# Subdirectories
LOGS_DIR = LETTERPRESS_DIR / "logs"
DEFAULT_DATA_ROOT = LETTERPRESS_DIR / "store"

# Specific files
CONFIG_PATH = LETTERPRESS_DIR / "config.json"

# Names inside a data root
DATA_SUBDIR = "data"
TEMPLATES_SUBDIR = "Templates"
SIGNATURES_SUBDIR = "Signatures"
IMAGES_SUBDIR = "images"

CACHE_FILE = "cache.json"
FAVOURITES_FILE = "favourites.json"
LOCATIONS_FILE = "locations.json"
SALUTATIONS_FILE = "salutations.json"
VALEDICTIONS_FILE = "valedictions.json"
