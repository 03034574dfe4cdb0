"""srccli - command-line client for the SourceCraft forge.

The option parser is usable on its own:

from srccli import OptionParser

parser = OptionParser("tool", "[options] <file>")
verbose = parser.add_flag("v", "verbose", "chatty output")
parser.parse(["-v", "input.txt"])
parser.is_present(verbose)   # True
parser.args                  # ["input.txt"]

The ``src`` console script is :func:`srccli.cli.main`.
"""

from __future__ import annotations

__version__ = "0.2.0"

from .config import ClientConfig, load_config  # noqa: E402
from .errors import (  # noqa: E402
    APIError,
    CLIError,
    MissingValueError,
    OptionError,
    RequiredMissingError,
    TypeConversionError,
    UnknownOptionError,
    ValidationFailedError,
)
from .options import Option, OptionKind, OptionParser  # noqa: E402

__all__ = [
    "APIError",
    "CLIError",
    "ClientConfig",
    "MissingValueError",
    "Option",
    "OptionError",
    "OptionKind",
    "OptionParser",
    "RequiredMissingError",
    "TypeConversionError",
    "UnknownOptionError",
    "ValidationFailedError",
    "__version__",
    "load_config",
]
