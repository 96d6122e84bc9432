import logging
from logging.config import dictConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def configure_logging(level: str = "INFO"):
    """
    Install a stream handler on the root logger
    Meant for applications, the library never calls it on import
    """
    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': LOG_FORMAT
            }
        },
        'handlers': {
            'default': {
                'class': 'logging.StreamHandler',
                'formatter': 'default'
            }
        },
        'root': {
            'level': level.upper(),
            'handlers': ['default']
        }
    })
    logging.getLogger(__name__).debug(f"Logging configured at level {level.upper()}")
