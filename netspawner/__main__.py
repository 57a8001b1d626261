import sys

from netspawner.cli import main

if __name__ == "__main__":
    sys.exit(main())
