from enum import Enum


class CliColor(str, Enum):
    """Colors for deployment and query output"""

    SUCCESS = "green"
    ERROR = "red"
    WARNING = "yellow"
    INFO = "blue"
    HEADER = "cyan"
    TITLE = "bright_cyan"

    # Chain values
    ADDRESS = "bright_blue"
    HASH = "bright_black"
    VALUE = "bright_magenta"

    # Contract deployment states
    PROGRESS = "magenta"
    SUBMITTED = "yellow"
    SKIPPED = "bright_yellow"
