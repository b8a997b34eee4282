import sys

from mjml_toolkit.cli import main

sys.exit(main())
