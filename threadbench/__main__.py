import sys

from threadbench.main import main

sys.exit(main())
