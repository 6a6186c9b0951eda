"""Global constants for kicad-assist."""

# Generator
DEFAULT_BASE_URL = "http://localhost:11434"
"""Default base URL of the local Ollama server."""

DEFAULT_MODEL = "qwen2.5-coder:32b"
"""Preferred code-focused model, used when the server lists it."""

DEFAULT_TIMEOUT_S = 120.0
"""Default per-request timeout in seconds."""

# Command language
COMMAND_VERBS = ("add", "connect", "wire", "place")
"""Verbs the response miner accepts as the first word of a command line."""

UNRECOGNIZED_COMMAND = "Command not recognized or incomplete"
"""Error reported when a line does not parse into an action."""

CANCELLED_MESSAGE = "Request cancelled."

NO_COMMANDS_FOUND = "No commands found in response"

# Context and prompt bounds
MAX_LIBRARIES = 20
"""Libraries enumerated per table when snapshotting context."""

MAX_ITEMS_PER_LIBRARY = 50
"""Symbols or footprints enumerated per library when snapshotting context."""

MAX_PROMPT_ENTRIES = 100
"""Upper bound on lib:item entries listed in the system prompt."""

LIST_PREVIEW_ITEMS = 10
"""Items shown per library by the list commands."""

# Placement
DEFAULT_PLACEMENT = (100_000, 100_000)
"""Default symbol position in host internal units when none is given."""

# Host units
SCH_IU_PER_MM = 10_000
"""Schematic internal units per millimetre (1 IU = 100 nm)."""

PCB_IU_PER_MM = 1_000_000
"""Board internal units per millimetre (1 IU = 1 nm)."""

DEFAULT_TRACK_WIDTH_MM = 0.25
"""Track width used by the file-backed board host when none is given."""

# Commit labels
PLACE_SYMBOL_LABEL = "Place Symbol"
DRAW_WIRE_LABEL = "Draw Wire"
ADD_TRACK_LABEL = "Add Track"
