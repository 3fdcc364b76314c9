import sys

from skybins.cli import main

sys.exit(main())
