"""Pre-compiled regex patterns shared by the record normalizers.

Usage:
    from utils.patterns import CURRENCY_SYMBOLS, WHITESPACE
"""

import re

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# Currency symbols and ISO codes stripped during numeric conversion
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]|\b(?:MXN|USD)\b', re.IGNORECASE)

# Thousands separators: commas, and spaces between digit groups ("1 234 567")
THOUSANDS_SEP = re.compile(r'(?<=\d)[,\s](?=\d{3}\b)')
