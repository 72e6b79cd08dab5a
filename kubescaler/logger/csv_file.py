"""Cycle log output: delimited rows in a size-rotated file that always starts with its header."""

import logging

from logging.handlers import RotatingFileHandler
from pathlib import Path

def csv_cell(value):
    return f"{value:.2f}" if isinstance(value, float) else str(value)

class RowFormatter(logging.Formatter):
    """Renders list and tuple messages as one delimited row. Anything else is formatted as usual."""

    def __init__(self, fmt=None, datefmt=None, delimiter=","):
        super().__init__(fmt, datefmt)
        self.delimiter = delimiter

    def row(self, values):
        return self.delimiter.join(csv_cell(value) for value in values)

    def formatMessage(self, record):
        # record.msg stays a list so other handlers see the original row.
        if isinstance(record.msg, (list, tuple)):
            record.message = self.row(record.msg)
        return super().formatMessage(record)

class CsvFileHandler(RotatingFileHandler):
    """A RotatingFileHandler whose new files, rollovers included, begin with `header`."""

    def __init__(self, filename, header=None, fmt=None, datefmt=None, delimiter=",", **kwargs):
        existed = Path(filename).exists()
        super().__init__(filename, **kwargs)

        self.setFormatter(RowFormatter(fmt, datefmt, delimiter))
        self.header = self.formatter.row(header) if header else None

        if self.mode == "w" or not existed:
            self._write_header()

    def doRollover(self):
        super().doRollover()
        self._write_header()

    def _write_header(self):
        if self.header and self.stream:
            self.stream.write(self.header + self.terminator)
            self.flush()
