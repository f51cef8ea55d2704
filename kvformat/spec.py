"""
KV Format Specification v1
==========================

Layout:
    Filetype: <text>             <- Optional header, first record of the file
    Version: <uint32>            <- Header version record
    # <comment text>             <- Comment line (skipped by every lookup)
    <key>: <value> [<value>...]  <- Record line, values separated by one space
    ...

Design Decisions:
    - One record per line, key and values separated by ": "
    - # only starts a comment at the true beginning of a line
    - \\r is ignored everywhere, so files edited on Windows still parse
    - Values are plain text: hex bytes, decimal numbers, true/false
    - Text values take the rest of the line verbatim, spaces included
    - No index: every lookup scans the stream, nothing is cached

Priority: Correctness under in-place edits > Human Readability > Speed
"""

# Reserved bytes. Iterating over bytes yields ints, so these are ints too.
DELIMITER = ord(":")
COMMENT = ord("#")
EOL = ord("\n")
EOL_IGNORE = ord("\r")
SPACE = ord(" ")

RESERVED_BYTES = frozenset({DELIMITER, COMMENT, EOL, EOL_IGNORE, SPACE})

# Header record keys
FILETYPE_KEY = "Filetype"
VERSION_KEY = "Version"

# File extension
EXTENSION = ".kvf"

# Bytes requested per stream read while scanning
DEFAULT_CHUNK_SIZE = 32
