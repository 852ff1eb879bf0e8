"""Entry point for running the CLI."""
import sys
from formfill.cli.main import run

if __name__ == "__main__":
    run(sys.argv[1:])
