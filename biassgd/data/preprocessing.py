"""
Модуль для препроцессинга ребер.

Основные функции:
- Удаление дубликатов ребер
- Перенос id колонок в отдельное пространство (и обратно)
- Глобальное среднее по обучающим ребрам
- Статистика графа
"""

from typing import Dict

import numpy as np
import pandas as pd


def remove_duplicates(
    df: pd.DataFrame,
    source_col: str = 'sourceId',
    target_col: str = 'targetId',
    role_col: str = 'role',
    keep: str = 'last'
) -> pd.DataFrame:
    """
    Удаляет повторные ребра (одна пара строка-колонка в одной роли).

    Args:
        df: DataFrame ребер
        keep: какое значение оставить ('first' или 'last')

    Returns:
        DataFrame без дубликатов
    """
    initial_count = len(df)
    df = df.drop_duplicates(subset=[source_col, target_col, role_col], keep=keep)
    removed = initial_count - len(df)
    if removed > 0:
        print(f"Удалено дубликатов: {removed}")
    return df.reset_index(drop=True)


def remap_target_ids(df: pd.DataFrame, target_col: str = 'targetId') -> pd.DataFrame:
    """
    Переносит id колонок в отрицательное пространство: t -> -(t + 2).

    После этого id строк (>= 0) и колонок (<= -2) не пересекаются,
    даже если в исходных файлах они совпадают.
    """
    df = df.copy()
    df[target_col] = -(df[target_col].astype(np.int64) + 2)
    return df


def unmap_target_id(target_id: int) -> int:
    """Обратное преобразование к remap_target_ids."""
    return -target_id - 2


def compute_global_mean(df: pd.DataFrame, value_col: str = 'value', role_col: str = 'role') -> float:
    """
    Среднее значение по обучающим ребрам.

    Raises:
        ValueError: если обучающих ребер нет
    """
    train_values = df.loc[df[role_col] == 'train', value_col]
    if train_values.empty:
        raise ValueError("Нет обучающих ребер: глобальное среднее не определено")
    return float(train_values.mean())


def get_statistics(
    df: pd.DataFrame,
    source_col: str = 'sourceId',
    target_col: str = 'targetId',
    role_col: str = 'role'
) -> Dict:
    """
    Вычисляет статистику по ребрам.

    Returns:
        Словарь: n_rows, n_cols, n_edges, количество ребер по ролям, sparsity
    """
    n_rows = int(df[source_col].nunique())
    n_cols = int(df[target_col].nunique())
    n_edges = len(df)

    role_counts = df[role_col].value_counts()
    density = n_edges / (n_rows * n_cols) if n_rows * n_cols > 0 else 0.0

    stats = {
        'n_rows': n_rows,
        'n_cols': n_cols,
        'n_edges': n_edges,
        'n_train': int(role_counts.get('train', 0)),
        'n_validate': int(role_counts.get('validate', 0)),
        'n_predict': int(role_counts.get('predict', 0)),
        'sparsity': 1.0 - density,
    }
    return stats
