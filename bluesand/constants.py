"""Shared constants for bluesand reports."""

RAW_CSV_FILENAME = "WORDMAP_RAW.csv"
WORD_MAP_FILENAME = "WORDMAP_TABLE.md"
SUMMARY_FILENAME = "SUMMARY.md"

# Generated reports are never scanned, even when the output directory sits inside an include root.
REPORT_FILENAMES = frozenset(
    name.lower() for name in (RAW_CSV_FILENAME, WORD_MAP_FILENAME, SUMMARY_FILENAME)
)

TOP_REPO_LIMIT = 10
TOP_TERM_LIMIT = 15
