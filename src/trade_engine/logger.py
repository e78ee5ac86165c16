import logging
import sys
import json
import os
import gzip
import shutil
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from typing import Optional
from app_config import LoggingConfig
from trade_engine.context import get_current_portfolio

_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'message', 'portfolio_id',
}


class CompressingTimedRotatingFileHandler(TimedRotatingFileHandler):
    """TimedRotatingFileHandler that compresses rotated files"""

    def doRollover(self):
        super().doRollover()

        dir_name, base_name = os.path.split(self.baseFilename)

        try:
            for file_name in os.listdir(dir_name):
                if file_name.startswith(base_name) and not file_name.endswith('.gz') and file_name != base_name:
                    full_path = os.path.join(dir_name, file_name)
                    with open(full_path, 'rb') as f_in:
                        with gzip.open(f'{full_path}.gz', 'wb') as f_out:
                            shutil.copyfileobj(f_in, f_out)
                    os.remove(full_path)
        except OSError as e:
            # Rollover already happened; only compression failed
            print(f"Error during log compression: {e}", file=sys.stderr)


class StructuredFormatter(logging.Formatter):
    """Formatter emitting text or JSON lines with the portfolio id attached"""

    def __init__(self, output_format: str = 'text'):
        super().__init__()
        self.output_format = output_format

    def format(self, record):
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        portfolio_id = getattr(record, 'portfolio_id', None)
        if portfolio_id is not None:
            log_data['portfolio_id'] = portfolio_id

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            if isinstance(value, datetime):
                log_data[key] = value.strftime('%Y-%m-%d %H:%M:%S %Z')
            else:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if self.output_format == 'json':
            return json.dumps(log_data, default=str)

        base_msg = f"{log_data['timestamp']} - {log_data['logger']} - {log_data['level']} - {log_data['message']}"
        if 'portfolio_id' in log_data:
            base_msg += f" [portfolio_id={log_data['portfolio_id']}]"
        if 'exception' in log_data:
            base_msg += f"\n{log_data['exception']}"
        return base_msg


class PortfolioContextFilter(logging.Filter):
    """Stamp every record with the portfolio from the current context"""

    def filter(self, record):
        if getattr(record, 'portfolio_id', None) is None:
            record.portfolio_id = get_current_portfolio()
        return True


def configure_root_logger(config: Optional[LoggingConfig] = None, service_name: str = 'trade-engine'):
    """Configure the root logger to use structured formatting for all logs"""
    config = config or LoggingConfig()
    root_logger = logging.getLogger()

    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, config.level.upper()))

    formatter = StructuredFormatter(config.format)
    context_filter = PortfolioContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    if config.log_dir:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = CompressingTimedRotatingFileHandler(
            filename=os.path.join(config.log_dir, f'{service_name}.log'),
            when='midnight',
            interval=1,
            backupCount=365,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        root_logger.addHandler(file_handler)

    _configure_third_party_loggers()


def _configure_third_party_loggers():
    """Configure specific third-party library loggers with appropriate levels"""
    # aiohttp: Set to WARNING to reduce HTTP request/response noise
    logging.getLogger('aiohttp').setLevel(logging.WARNING)

    # Redis: connection issues only
    logging.getLogger('redis').setLevel(logging.WARNING)


class AppLogger:
    """Logger wrapper that attaches the current portfolio id to every record"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    @staticmethod
    def _extra():
        return {'portfolio_id': get_current_portfolio()}

    def log_debug(self, message: str):
        self.logger.debug(message, extra=self._extra())

    def log_info(self, message: str):
        self.logger.info(message, extra=self._extra())

    def log_warning(self, message: str):
        self.logger.warning(message, extra=self._extra())

    def log_error(self, message: str):
        self.logger.error(message, extra=self._extra())
