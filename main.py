"""Entry point: set up logging, then play the files given on the command line."""

import logging
import sys

from playdeck.cli import main as cli_main


def main():
    log = logging.getLogger("playdeck.main")
    try:
        return cli_main()
    except Exception:
        log.exception("Startup error")
        return 1


if __name__ == '__main__':
    sys.exit(main())
