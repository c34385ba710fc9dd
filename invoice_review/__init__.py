"""
Invoice Review API.

Upload PDF invoices, extract their fields with a language model, and
review, edit and search the stored invoices.
"""

__version__ = "0.1.0"
