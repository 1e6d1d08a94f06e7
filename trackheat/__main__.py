import sys

from trackheat.cli import main

sys.exit(main())
