import sys

from flight_tracker.cli import main

if __name__ == "__main__":
    sys.exit(main())
