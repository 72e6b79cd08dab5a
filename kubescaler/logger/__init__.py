import logging

from kubescaler.constants import SCALER_CSV, SCALER_FILE, SCALER_STDOUT
from kubescaler.logger.scaler_logger import ScalerLogger

# Register custom log levels with logging.
logging.addLevelName(SCALER_STDOUT, "SCALER_STDOUT")
logging.addLevelName(SCALER_CSV, "SCALER_CSV")
logging.addLevelName(SCALER_FILE, "SCALER_FILE")

__all__ = ["ScalerLogger"]
