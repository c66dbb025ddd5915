# -*- coding: utf-8 -*-
"""Nutrition lookup (USDA FoodData Central) and calorie-equivalent food swaps."""
