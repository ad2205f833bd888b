"""Console-script entry point; reports a missing ``cli`` extra instead of a traceback."""

import sys


def main():
    try:
        from .cli import main as cli_main
    except ImportError as exc:
        if exc.name != "click":
            raise
        sys.stderr.write(
            "firebatch: the command-line tool needs click.\n"
            "Install the CLI extra:  pip install 'firebatch[cli]'\n"
        )
        raise SystemExit(1)
    cli_main(prog_name="firebatch")
