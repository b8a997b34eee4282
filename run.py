# -*- coding: utf-8 -*-

"""
Main entry point for launching the MJML Toolkit command line from a checkout.
"""

import logging
import sys

from mjml_toolkit.cli import main

if __name__ == '__main__':
    code = main()
    logging.info("===== Application terminated =====")
    sys.exit(code)
