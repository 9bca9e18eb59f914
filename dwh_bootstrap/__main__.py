import sys

from dwh_bootstrap.cli import main

if __name__ == "__main__":
    sys.exit(main())
