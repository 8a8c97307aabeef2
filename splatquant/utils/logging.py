import logging
from typing import Any, Dict


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """
    Создаёт и настраивает логгер пакета ``splatquant``.

    :param level: минимальный уровень логирования
    :return: настроенный экземпляр :class:`logging.Logger`
    """
    logger = logging.getLogger("splatquant")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False

    return logger


def get_logger() -> logging.Logger:
    """Логгер пакета без настройки обработчиков (для библиотечного кода)."""
    return logging.getLogger("splatquant")


def format_table_prefix(meta: Dict[str, Any]) -> str:
    """
    Префикс для логов по параметрам прогона.

    Ожидается словарь с ключами ``N``, ``D``, ``K`` и опциональным ``group``.
    """
    prefix = f"[N={meta['N']} D={meta['D']} K={meta['K']}"
    if meta.get("group"):
        prefix += f" group={meta['group']}"
    return prefix + "]"
