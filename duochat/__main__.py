import sys

from duochat.cli import main

sys.exit(main())
