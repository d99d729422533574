import sys

from zimlook.cli import main

sys.exit(main())
