import sys

from lyapspec.cli import main

sys.exit(main())
