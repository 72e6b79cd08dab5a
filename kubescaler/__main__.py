import sys

from kubescaler.cli import main

sys.exit(main())
