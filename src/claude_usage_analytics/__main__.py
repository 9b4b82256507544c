"""Entry point for `python -m claude_usage_analytics`."""

import sys


def main():
    from claude_usage_analytics.app import run
    sys.exit(run())


if __name__ == "__main__":
    main()
