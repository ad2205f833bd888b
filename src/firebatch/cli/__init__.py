"""firebatch command-line interface."""

from ._helpers import main  # noqa: F401

# Import command modules to register Click commands with the main group.
from . import _bulk  # noqa: F401
