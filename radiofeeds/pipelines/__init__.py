from .console_writer import ConsoleWriter
from .telegram_writer import TelegramWriter

__all__ = ["ConsoleWriter", "TelegramWriter"]
