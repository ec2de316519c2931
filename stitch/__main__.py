import sys

from stitch.app import main

sys.exit(main())
