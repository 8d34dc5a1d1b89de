"""
Field name constants for operation record columns.
Single source of truth for the header text used across the parser.
"""

# Member fields (keys used on OpMember and in column maps)
UNIQUE_NAME = 'unique_name'
DISPLAY_NAME = 'display_name'  # Derived from the Name column, never matched
CALLSIGN = 'callsign'
TYPE = 'type'
BOLTERS = 'bolters'
WIRE = 'wire'
LSO_GRADE = 'lso_grade'
COMBAT_DEATHS = 'combat_deaths'
PROMOTIONS = 'promotions'
REMARKS = 'remarks'

# Header text expected in an op's header row, in match order
COLUMN_HEADERS = {
    UNIQUE_NAME: 'Name',
    CALLSIGN: 'Callsign',
    TYPE: 'Type',
    BOLTERS: 'Bolters',
    WIRE: 'Wire No.',
    LSO_GRADE: 'LSO Grade',
    COMBAT_DEATHS: 'Combat Deaths',
    PROMOTIONS: 'Promotions',
    REMARKS: 'Remarks',
}

# Sentinel in column 0 that starts an op's header row
OP_HEADER_SENTINEL = COLUMN_HEADERS[UNIQUE_NAME]

# Config block marker and keys (matched case-insensitively)
CONFIG_MARKER = 'config'
CONFIG_COUNT_BOLTERS = 'count bolters'
CONFIG_COUNT_DEATHS = 'count deaths'
