# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""REST binding for the key-value contract."""
