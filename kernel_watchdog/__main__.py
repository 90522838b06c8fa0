import sys

from kernel_watchdog.cli import main

sys.exit(main())
