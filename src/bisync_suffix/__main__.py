import sys

from bisync_suffix.cli import main

sys.exit(main())
