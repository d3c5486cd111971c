# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Configuration, logging, error taxonomy and shared constants."""
