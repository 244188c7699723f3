"""Entry point for ``python -m kermit``; also what the new-window action re-runs."""

from kermit.cli import run

if __name__ == "__main__":
    raise SystemExit(run())
