import sys

from merklebatch.cli import main

sys.exit(main())
