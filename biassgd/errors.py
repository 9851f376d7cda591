"""Исключения пакета biassgd."""


class BiasSGDError(Exception):
    """Базовое исключение пакета."""
    pass


class InvariantViolation(BiasSGDError, AssertionError):
    """
    Нарушение инварианта ядра (NaN в ошибке, аккумулятор не в той ветке apply,
    ноль обучающих ребер на момент отчета).

    Никогда не перехватывается ядром: означает испорченный граф
    или неверное назначение ролей ребрам.
    """
    pass


class EdgeParseError(BiasSGDError, ValueError):
    """Строка edge-list файла не соответствует формату."""

    def __init__(self, filename: str, line_number: int, line: str):
        self.filename = filename
        self.line_number = line_number
        self.line = line
        super().__init__(
            f"Некорректная строка {line_number} в {filename}: {line.rstrip()!r}"
        )
