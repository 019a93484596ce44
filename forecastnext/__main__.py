import sys

from forecastnext.cli import main

sys.exit(main())
