"""
日志配置
"""

import logging

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """配置根日志记录器"""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # SQLAlchemy 的引擎日志由 echo 参数控制
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
