import sys

from trackhub.cli import main

sys.exit(main())
