# blackgold/infrastructure/logging/log_manager.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_LOGGING_CONFIG = {
    'level': 'INFO',
    'console': True,
    'console_level': 'INFO',
    'file': {
        'enabled': False,
        'path': 'logs/blackgold.log',
        'level': 'DEBUG',
        'max_bytes': 10 * 1024 * 1024,
        'backup_count': 5
    },
    'loggers': {
        'domain.machine': {'level': 'INFO'},
        'domain.session': {'level': 'INFO'},
        'application.analysis': {'level': 'INFO'},
        'infrastructure.rng': {'level': 'WARNING'}
    }
}


class LogManager:
    """
    Centralized logging configuration manager.
    """
    def __init__(self):
        self.root_logger = logging.getLogger()
        self.loggers: Dict[str, logging.Logger] = {}
        self.handlers: Dict[str, logging.Handler] = {}
        self.initialized = False

    def initialize(self, config: Optional[Dict[str, Any]] = None, force: bool = False):
        """
        Initialize logging from the 'logging' section of a configuration.

        Args:
            config: Logging configuration dictionary (defaults if None)
            force: Reconfigure even if already initialized
        """
        if self.initialized and not force:
            return

        config = DEFAULT_LOGGING_CONFIG if config is None else config

        log_level = self._get_log_level(config.get('level', 'INFO'))
        formatter = logging.Formatter(
            config.get('format', DEFAULT_FORMAT),
            config.get('date_format', '%Y-%m-%d %H:%M:%S')
        )

        self.root_logger.setLevel(log_level)

        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
        for handler in self.handlers.values():
            handler.close()
        self.handlers = {}

        if config.get('console', True):
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self._get_log_level(config.get('console_level', log_level)))
            console_handler.setFormatter(formatter)
            self.root_logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        file_config = config.get('file', {})
        if file_config.get('enabled', False):
            file_path = file_config.get('path', 'logs/blackgold.log')

            log_dir = os.path.dirname(file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=file_config.get('max_bytes', 10 * 1024 * 1024),
                backupCount=file_config.get('backup_count', 5)
            )
            file_handler.setLevel(self._get_log_level(file_config.get('level', log_level)))
            file_handler.setFormatter(formatter)
            self.root_logger.addHandler(file_handler)
            self.handlers['file'] = file_handler

        # Parents before children so a child's level overrides its parent's
        loggers_config = config.get('loggers', {})
        for logger_name in sorted(loggers_config, key=lambda x: len(x.split('.'))):
            logger_config = loggers_config[logger_name] or {}
            logger = logging.getLogger(logger_name)
            logger.setLevel(self._get_log_level(logger_config.get('level', log_level)))
            logger.propagate = logger_config.get('propagate', True)
            self.loggers[logger_name] = logger

            self.root_logger.debug(
                f"Configured logger '{logger_name}' with level={logging.getLevelName(logger.level)}, "
                f"propagate={logger.propagate}"
            )

        self.root_logger.debug("Logging system initialized")
        self.initialized = True

    def _get_log_level(self, level_name: Union[str, int]) -> int:
        """
        Convert a log level name to its numeric value. Unknown names map to INFO.
        """
        if isinstance(level_name, int):
            return level_name

        level_map = {
            'CRITICAL': logging.CRITICAL,
            'ERROR': logging.ERROR,
            'WARNING': logging.WARNING,
            'WARN': logging.WARNING,
            'INFO': logging.INFO,
            'DEBUG': logging.DEBUG,
            'NOTSET': logging.NOTSET
        }
        return level_map.get(level_name.upper(), logging.INFO)


# Singleton instance
log_manager = LogManager()


def initialize_logging(config: Optional[Dict[str, Any]] = None) -> LogManager:
    """Initialize the shared LogManager, with defaults if no config is given."""
    log_manager.initialize(config)
    return log_manager
