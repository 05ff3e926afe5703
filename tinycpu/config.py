"""
Tiny CPU toolchain — defaults.

The capacity, step limit and log level can be overridden from the tinykit
command line.
"""

import logging

# =============================================================================
#  FILES
# =============================================================================
SOURCE_SUFFIX = ".asm"
BINARY_SUFFIX = ".bin"
HEX_SUFFIXES = (".hex", ".txt")     # loaded as hex text, not raw bytes

# =============================================================================
#  EMULATOR
# =============================================================================
ROM_CAPACITY = 512          # bytes = 256 instruction slots
MAX_STEPS = None            # None = run until PC leaves the program

# =============================================================================
#  LOGGING
# =============================================================================
LOG_LEVEL = logging.WARNING
LOG_FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
