import sys

from spectrolight.cli import main

sys.exit(main())
