"""Source discovery and processing configuration.

These settings control which files are handed to the Kotlin front end and
how many are parsed concurrently.
"""

# =============================================================================
# Source Selection
# =============================================================================
# Only Kotlin sources are analyzed. Anything living under a test directory is
# skipped so generated suites are never fed back into the analysis.

SOURCE_EXTENSIONS = [".kt"]

TEST_DIRECTORY_NAMES = ["test", "tests", "androidTest"]

# =============================================================================
# Size Limits
# =============================================================================
# Files larger than MAX_FILE_SIZE_KB are skipped. Huge generated sources slow
# the parser down and rarely contain hand-written branches worth covering.

MAX_FILE_SIZE_KB = 500

BINARY_CHECK_BYTES = 1024

# =============================================================================
# Concurrency
# =============================================================================
# Number of files parsed and modeled in parallel. Everything after the build
# phase runs on the merged model in a single thread.

PARALLEL_LIMIT = 4
