"""
Bias-SGD матричная факторизация поверх gather-apply-scatter движка.

Подпакеты:
- data: загрузка edge-list файлов и построение bipartite графа
- models: состояние вершин/ребер, аккумулятор градиента, vertex program
- engine: локальный GAS движок (synchronous / asynchronous)
- training: монитор сходимости и драйвер обучения
- evaluation: оценка и сохранение предсказаний
"""

__version__ = "0.1.0"
