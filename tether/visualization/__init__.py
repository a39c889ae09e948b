from .console import ConsoleSubscriber

__all__ = ["ConsoleSubscriber"]
