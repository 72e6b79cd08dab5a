import logging
import zlib

from kubescaler.constants import DEFAULT_FMT, SCALER_CSV, SCALER_FILE, SCALER_STDOUT
from kubescaler.logger.csv_file import CsvFileHandler
from pathlib import Path

def get_base_logger(name=None, level=SCALER_STDOUT, handlers=None, formatter=None):
    """Create and configure a logger that outputs messages to the console or specified handlers."""

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Loggers are process-wide; a second loop for the same workload reuses the handlers.
    if logger.handlers:
        return logger

    # If no handlers are provided, create a default StreamHandler (console output).
    if not handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter or logging.Formatter(fmt=DEFAULT_FMT))
        handlers = [handler]
    elif not isinstance(handlers, (list, tuple)):
        handlers = [handlers]

    for handler in handlers:
        logger.addHandler(handler)

    return logger

def directory_logger_name(name, dirname):
    """
    Names the process-wide logger behind a file sink. The resolved directory is part of
    the name, so the same `name` under two directories gives two loggers writing to two files.
    """

    digest = zlib.crc32(str(Path(dirname).resolve()).encode())
    return f"{name}@{digest:08x}"

def _with_label(fmt, name):
    # Shows `name` rather than the directory-qualified logger name.
    return fmt.replace("%(name)s", str(name).replace("%", "%%"))

def _existing(logger_name, level):
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        return None
    logger.setLevel(level)
    return logger

def get_file_logger(name=None, dirname="logs", filename=None, level=SCALER_FILE, mode="a", **kwargs):
    """Create a logger that appends plain text lines to a file under `dirname`."""

    logger_name = directory_logger_name(name, dirname)

    # Checked before opening anything, so a repeat call leaves no stray handle behind.
    logger = _existing(logger_name, level)
    if logger is not None:
        return logger

    filename = Path(dirname) / (filename or f"log_{name}.txt")
    filename.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(filename, mode=mode)
    handler.setFormatter(logging.Formatter(fmt=_with_label(DEFAULT_FMT, name)))

    return get_base_logger(logger_name, level=level, handlers=handler, **kwargs)

def get_csv_logger(name=None, dirname="logs", filename=None, header=None, level=SCALER_CSV, mode="a",
                   delimiter=",", datefmt="%Y/%m/%d %H:%M:%S", max_size=8_388_608, backup_count=4, **kwargs):
    """Create a CSV logger backed by a rotating file handler."""

    logger_name = directory_logger_name(name, dirname)

    logger = _existing(logger_name, level)
    if logger is not None:
        return logger

    message_format = _with_label(f"%(asctime)s.%(msecs)03d{delimiter}%(name)s{delimiter}%(message)s", name)

    filename = Path(dirname) / (filename or f"log_{name}.csv")
    filename.parent.mkdir(parents=True, exist_ok=True)

    # The header gets the two columns the message format prepends to every row.
    handler = CsvFileHandler(filename, header=["asctime", "name"] + list(header or []), fmt=message_format,
                             datefmt=datefmt, delimiter=delimiter, mode=mode, maxBytes=max_size,
                             backupCount=backup_count)

    logger = get_base_logger(logger_name, level=level, handlers=handler, **kwargs)

    # CSV rows should never show up on the console through the root logger.
    logger.propagate = False
    return logger
