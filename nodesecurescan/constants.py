"""Constants and configuration values for NodeSecureScan.

This module centralizes thresholds, file globs and limits that are used
across the scanners. Limits and timeouts can be overridden through
environment variables.
"""

import os

# =============================================================================
# Corpus Limits
# =============================================================================

# Files above this size are not read (1MB)
MAX_FILE_SIZE_BYTES = int(os.environ.get("NODESECURESCAN_MAX_FILE_SIZE", 1024 * 1024))

# Maximum number of files resolved for a single glob
MAX_CORPUS_FILES = int(os.environ.get("NODESECURESCAN_MAX_FILES", 5000))

# Directories never descended into
EXCLUDED_DIRS = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    "public",
    "coverage",
    ".next",
    ".nuxt",
})


# =============================================================================
# File Globs
# =============================================================================

SOURCE_GLOB = "**/*.{js,ts,jsx,tsx}"

SECRETS_GLOB = "**/*.{js,ts,jsx,tsx,json,env,config,yml,yaml}"

ENV_FILES_GLOB = "**/.env*"

MANIFEST_FILE = "package.json"


# =============================================================================
# Rate Limiting Thresholds
# =============================================================================

# A `max:` above this many requests per window is reported
RATE_LIMIT_MAX_THRESHOLD = 100

# A `windowMs:` below this many milliseconds is reported (1 minute)
RATE_LIMIT_WINDOW_THRESHOLD_MS = 60000


# =============================================================================
# External Tools
# =============================================================================

# Timeout for npm / depcheck / snyk invocations, in seconds
EXTERNAL_TOOL_TIMEOUT = int(os.environ.get("NODESECURESCAN_TOOL_TIMEOUT", 120))


# =============================================================================
# Report
# =============================================================================

DEFAULT_REPORT_DIR = "reports"

REPORT_FILENAME_TEMPLATE = "security-scan-{timestamp}.json"
