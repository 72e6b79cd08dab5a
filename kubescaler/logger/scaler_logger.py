import logging

from kubescaler.constants import SCALER_CSV, SCALER_FILE, SCALER_STDOUT
from kubescaler.utils.logger import get_base_logger, get_csv_logger, get_file_logger

class ScalerLogger:
    """Console, file and CSV logging for one control loop. File sinks exist only when `dirname` is set."""

    def __init__(self, name=None, dirname=None, csv_header=None, level=SCALER_STDOUT):
        self._std_log = get_base_logger(f"std_{name}", level)
        self._file_log = None
        self._csv_log = None

        if dirname:
            self._file_log = get_file_logger(f"file_{name}", dirname, level=min(level, SCALER_FILE))
            self._csv_log = get_csv_logger(f"csv_{name}", dirname, header=csv_header, level=min(level, SCALER_CSV))

    def setLevel(self, level):
        for logger in self._loggers():
            logger.setLevel(level)

    def _loggers(self):
        return [logger for logger in (self._std_log, self._file_log, self._csv_log) if logger is not None]

    def _log(self, logger, level, message, *args, **kwargs):
        if logger is not None and logger.isEnabledFor(level):
            logger._log(level, message, args, **kwargs)

    def std_log(self, message, *args, **kwargs):
        self._log(self._std_log, SCALER_STDOUT, message, *args, **kwargs)
        self._log(self._file_log, SCALER_FILE, message, *args, **kwargs)

    def error_log(self, message, *args, exc_info=None, **kwargs):
        self._log(self._std_log, logging.ERROR, message, *args, exc_info=exc_info, **kwargs)
        self._log(self._file_log, logging.ERROR, message, *args, exc_info=exc_info, **kwargs)

    def csv_log(self, row):
        self._log(self._csv_log, SCALER_CSV, row)
