import sys

from pinata.cli import main

sys.exit(main())
