import sys

from bptracker.console import main

if __name__ == "__main__":
    sys.exit(main())
