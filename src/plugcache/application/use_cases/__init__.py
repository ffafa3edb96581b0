from .format_files import FileStatus, FormatReport, FormatRun
from .load_formatters import FormatterSet, load_formatters

__all__ = ["FileStatus", "FormatReport", "FormatRun", "FormatterSet", "load_formatters"]
