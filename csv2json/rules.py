"""
Fixed conversion rules.

This file exists to keep the output format explicit and enforceable.
"""

SEPARATOR_CHARS = {
    "comma": ",",
    "semicolon": ";",
}

SOURCE_SUFFIX = ".csv"
OUTPUT_SUFFIX = ".json"

OUTPUT_ENCODING = "utf-8"
INDENT_UNIT = "   "  # pretty mode, per nesting level

# bytes read from the head of the source for charset detection
ENCODING_SAMPLE_BYTES = 64 * 1024
