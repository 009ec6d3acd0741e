"""Helper modules for the print shop agent."""

__all__ = [
    "page_selector",
    "pdf_analyzer",
    "print_attributes",
]
