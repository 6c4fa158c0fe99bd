import os
import sys


def dbg(*parts):
    """Trace to stderr when EXPR_DEBUG is set in the environment."""
    if os.environ.get("EXPR_DEBUG"):
        print("[DBG]", *parts, file=sys.stderr)
