# -*- coding: utf-8 -*-
"""Generative AI access (Gemini REST) and lenient parsing of model output."""
