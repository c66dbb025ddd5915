# -*- coding: utf-8 -*-
"""dietboard — personal diet plan board with an AI food-swap assistant."""

__version__ = "0.1.0"
