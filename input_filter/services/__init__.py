"""
Services: the filter registry, built-in rules and cleaners.
"""
from input_filter.services.input_filter import InputFilter

__all__ = ["InputFilter"]
