"""
calcnotes Constants Module
Contains the regular expressions, palettes and defaults shared by the engine,
the highlighter and the notebook store.
"""

import re


# =============================================================================
# LINE CLASSIFICATION
# =============================================================================

# Lines starting with one of these prefixes are comments
COMMENT_PREFIXES = ('//', '#')

# identifier = right-hand side
ASSIGNMENT_RE = re.compile(r'^([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*(.+)$')

# expression = number (a committed line)
RESOLVED_RE = re.compile(r'^(.+?)\s*=\s*([\d.\-]+)$')

# Characters a bare expression line may contain
EXPRESSION_CHARS_RE = re.compile(r'^[\d\s+\-*/().ans$a-zA-Z_×÷]+$')

# Signed decimal literal, the only thing a bare line may not be
LITERAL_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)$')

# Leading number of a string, read the way a lenient float parser would
LEADING_NUMBER_RE = re.compile(r'^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

ANS_RE = re.compile(r'\bans\b', re.IGNORECASE)
LINE_REF_RE = re.compile(r'\$(\d+)')
OPERATOR_CHARS = '+-*/()'

# Unicode operators typed from some keyboards
OPERATOR_ALIASES = {
    '×': '*',
    '÷': '/',
}


# =============================================================================
# DISPLAY CONSTANTS
# =============================================================================

# Decimal places used when writing a non-integer result into the text
RESULT_DECIMALS = 2

COLORS = {
    'comment': '#7ED321',    # Green comments
    'number': '#FFFFFF',     # White numbers
    'operator': '#BB8FCE',   # Light purple operators
    'paren': '#7ED321',      # Green parentheses
    'unmatched': '#F85149',  # Red unmatched parentheses
    'ans': '#4A90E2',        # Blue ans keyword
    'variable': '#F7DC6F',   # Yellow assignment targets
    'result': '#8B949E',     # Grey committed results
}

# Rotating palette for $N back-references
REF_COLORS = [
    '#FF6B6B',  # Red
    '#4ECDC4',  # Teal
    '#45B7D1',  # Blue
    '#96CEB4',  # Green
    '#FFEAA7',  # Yellow
    '#DDA0DD',  # Plum
    '#98D8C8',  # Mint
    '#F7DC6F',  # Light Yellow
    '#BB8FCE',  # Light Purple
    '#85C1E9',  # Light Blue
]

CSS_CLASSES = {
    'comment': 'syntax-comment',
    'number': 'syntax-number',
    'operator': 'syntax-operator',
    'paren': 'syntax-paren',
    'unmatched': 'syntax-unmatched',
    'ans': 'syntax-ans',
    'line_reference': 'syntax-line-ref',
    'variable': 'syntax-variable',
    'result': 'syntax-result',
}


# =============================================================================
# NOTEBOOK DEFAULTS
# =============================================================================

VIEW_MODES = ('tabs', 'desktop')
DEFAULT_VIEW_MODE = 'tabs'

DEFAULT_NOTEBOOK_NAME = "Note {number}"
DEFAULT_POSITION = {'x': 100, 'y': 100}
DEFAULT_SIZE = {'width': 500, 'height': 400}
# Each new desktop window is offset from the previous one
WINDOW_CASCADE_STEP = 30
