"""Allow ``python -m releasekeeper`` as an alias for the ``releasekeeper`` script."""

from __future__ import annotations

import sys


def main() -> int:
    # The CLI pulls in click, rich and httpx; report a broken install plainly
    try:
        from releasekeeper.cli import main as run_cli
    except ImportError as exc:
        print(
            "releasekeeper CLI could not be loaded "
            f"(Python {sys.version.split()[0]}): {exc}",
            file=sys.stderr,
        )
        return 1

    return run_cli()


if __name__ == "__main__":
    sys.exit(main())
