import sys

from wachturm.cli import main

sys.exit(main())
