import sys

from loom.demo import main

sys.exit(main())
