"""autocontext - budgeted reference-snippet context for code completion."""

__version__ = "0.1.0"
