"""Configuration constants.

Values here are protocol constraints and implementation details that
should NOT be user-configurable. For configurable values, see models.py.
"""

# =============================================================================
# Semantic index layout
# =============================================================================

REPOS_SUBDIR = "repos"
"""Per-repository data lives under <data_dir>/repos/<repo_id>/."""

SCIP_SUBDIR = "scip"
SCIP_INDEX_FILENAME = "index.scip"
"""Semantic index path: <data_dir>/repos/<repo_id>/scip/index.scip."""

DB_FILENAME = "app.db"
"""SQLite repository registry database inside <data_dir>."""

CONFIG_FILENAME = "config.yaml"

# =============================================================================
# Coordinate conventions published to clients
# =============================================================================

LINE_BASE = 1
COLUMN_BASE = 0

# =============================================================================
# Search defaults
# =============================================================================

FALLBACK_LIMIT_DEFAULT = 10
"""Text-search fallback result cap."""

ZOEKT_MAX_MATCH_COUNT_DEFAULT = 1000
RIPGREP_MAX_COUNT_DEFAULT = 100

# =============================================================================
# Protocol/Validation Constants
# =============================================================================

REPO_ID_MAX = 2**32 - 1
"""Repository identifiers are unsigned 32-bit."""

INT32_MAX = 2**31 - 1

PORT_MIN = 1
PORT_MAX = 65535
