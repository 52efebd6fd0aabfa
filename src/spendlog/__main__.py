# Spendlog - Personal double-entry ledger CLI
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

import sys

from .cli import main

sys.exit(main())
