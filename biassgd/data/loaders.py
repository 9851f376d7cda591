"""
Модуль с загрузчиками edge-list данных.

Каждый загрузчик преобразует данные в единый формат:
sourceId, targetId, value, role.

Формат строки edge-list файла:
    source [,] target [[,] value]
где id - неотрицательные целые числа, value - вещественное число
(по умолчанию 0). Роль ребра определяется суффиксом имени файла:
*.validate -> validate, *.predict -> predict, иначе train.
"""

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ..errors import EdgeParseError
from ..models.entities import EdgeRole
from .preprocessing import remap_target_ids


EDGE_COLUMNS = ['sourceId', 'targetId', 'value', 'role']

_SEP = r'(?:\s*,\s*|\s+)'
_FLOAT = r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?'
EDGE_LINE_PATTERN = re.compile(
    rf'^\s*(\d+){_SEP}(\d+)(?:{_SEP}({_FLOAT}))?\s*$'
)


def parse_edge_line(line: str) -> Optional[Tuple[int, int, float]]:
    """
    Разбирает строку edge-list файла.

    Args:
        line: строка файла

    Returns:
        (source_id, target_id, value) или None, если строка некорректна
    """
    match = EDGE_LINE_PATTERN.match(line)
    if match is None:
        return None
    source_id = int(match.group(1))
    target_id = int(match.group(2))
    value = float(match.group(3)) if match.group(3) is not None else 0.0
    return source_id, target_id, value


class BaseEdgeLoader(ABC):
    """
    Базовый класс для загрузчиков.

    Все загрузчики возвращают DataFrame с колонками sourceId, targetId, value, role
    (role - строковое значение EdgeRole).
    """

    @abstractmethod
    def load(self, data_path: Path) -> pd.DataFrame:
        """
        Загружает данные.

        Args:
            data_path: путь к данным (директория или файл)

        Returns:
            DataFrame с колонками sourceId, targetId, value, role
        """
        pass

    def _finalize(self, df: pd.DataFrame, remap_target: bool) -> pd.DataFrame:
        """Приводит типы и при необходимости переносит id колонок в отдельное пространство."""
        df = df[EDGE_COLUMNS].copy()
        df['sourceId'] = df['sourceId'].astype(np.int64)
        df['targetId'] = df['targetId'].astype(np.int64)
        df['value'] = df['value'].astype(np.float64)
        if remap_target:
            df = remap_target_ids(df)
        return df.reset_index(drop=True)


class EdgeListLoader(BaseEdgeLoader):
    """Загрузчик директории (или одного файла) в edge-list формате."""

    def __init__(self, remap_target: bool = False, strict: bool = False):
        """
        Args:
            remap_target: перенести id колонок в отрицательное пространство
            strict: бросать EdgeParseError на некорректной строке (иначе строка пропускается)
        """
        self.remap_target = remap_target
        self.strict = strict
        self.skipped_lines = 0

    def load(self, data_path: Path) -> pd.DataFrame:
        data_path = Path(data_path)
        if not data_path.exists():
            raise FileNotFoundError(f"Данные не найдены: {data_path}")

        if data_path.is_dir():
            files = sorted(
                f for f in data_path.iterdir()
                if f.is_file() and not f.name.startswith('.')
            )
        else:
            files = [data_path]

        if not files:
            raise FileNotFoundError(f"В директории {data_path} нет файлов с ребрами")

        frames = []
        for file_path in files:
            frame = self.load_file(file_path)
            print(f"  {file_path.name}: {len(frame)} ребер ({frame['role'].iloc[0] if len(frame) else '-'})")
            frames.append(frame)

        df = pd.concat(frames, ignore_index=True)
        if self.skipped_lines > 0:
            print(f"Пропущено некорректных строк: {self.skipped_lines}")

        return self._finalize(df, self.remap_target)

    def load_file(self, file_path: Path) -> pd.DataFrame:
        """Загружает один файл, роль определяется по имени файла."""
        role = EdgeRole.from_filename(file_path.name)
        rows = []

        with open(file_path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                parsed = parse_edge_line(line)
                if parsed is None:
                    if self.strict:
                        raise EdgeParseError(str(file_path), line_number, line)
                    self.skipped_lines += 1
                    continue
                source_id, target_id, value = parsed
                rows.append((source_id, target_id, value, role.value))

        return pd.DataFrame(rows, columns=EDGE_COLUMNS)


class MovieLensLoader(BaseEdgeLoader):
    """
    Загрузчик для датасета MovieLens.

    Формат: ratings.csv с колонками userId, movieId, rating (timestamp игнорируется).
    Случайная доля рейтингов помечается как validate (и, опционально, predict).

    userId и movieId нумеруются независимо и пересекаются, поэтому по умолчанию
    id фильмов переносятся в отрицательное пространство (remap_target=True).
    """

    def __init__(
        self,
        remap_target: bool = True,
        valid_ratio: float = 0.1,
        predict_ratio: float = 0.0,
        seed: Optional[int] = 42
    ):
        if valid_ratio < 0 or predict_ratio < 0 or valid_ratio + predict_ratio >= 1.0:
            raise ValueError(
                f"Некорректные доли: valid_ratio={valid_ratio}, predict_ratio={predict_ratio}"
            )
        self.remap_target = remap_target
        self.valid_ratio = valid_ratio
        self.predict_ratio = predict_ratio
        self.seed = seed

    def load(self, data_path: Path) -> pd.DataFrame:
        data_path = Path(data_path)
        ratings_file = data_path / "ratings.csv" if data_path.is_dir() else data_path

        if not ratings_file.exists():
            raise FileNotFoundError(f"Файл ratings.csv не найден в {data_path}")

        df = pd.read_csv(ratings_file)
        df = df.rename(columns={'userId': 'sourceId', 'movieId': 'targetId', 'rating': 'value'})

        missing = [c for c in ('sourceId', 'targetId', 'value') if c not in df.columns]
        if missing:
            raise ValueError(
                f"В {ratings_file.name} нет колонок {missing}\n"
                f"Найдены: {list(df.columns)}"
            )

        rng = np.random.RandomState(self.seed)
        draw = rng.random_sample(len(df))
        roles = np.full(len(df), EdgeRole.TRAIN.value, dtype=object)
        roles[draw < self.valid_ratio] = EdgeRole.VALIDATE.value
        roles[(draw >= self.valid_ratio) & (draw < self.valid_ratio + self.predict_ratio)] = EdgeRole.PREDICT.value
        df['role'] = roles

        print(f"Загружено {len(df)} рейтингов из MovieLens")

        return self._finalize(df, self.remap_target)


# Регистр загрузчиков
LOADER_REGISTRY = {
    'edgelist': EdgeListLoader,
    'edge_list': EdgeListLoader,
    'movie_lens': MovieLensLoader,
    'movielens': MovieLensLoader,
}


def get_loader(name: str, **kwargs) -> BaseEdgeLoader:
    """
    Возвращает загрузчик по имени.

    Args:
        name: название загрузчика
        **kwargs: параметры конструктора загрузчика

    Returns:
        Экземпляр загрузчика
    """
    loader_class = LOADER_REGISTRY.get(name)
    if loader_class is None:
        raise ValueError(
            f"Неизвестный загрузчик: {name}\n"
            f"Доступные загрузчики: {list(LOADER_REGISTRY.keys())}"
        )

    return loader_class(**kwargs)


def write_edge_list(df: pd.DataFrame, output_dir: Path, stem: str = 'ratings') -> dict:
    """
    Записывает ребра в edge-list файлы: <stem>.train, <stem>.validate, <stem>.predict.

    Args:
        df: DataFrame с колонками sourceId, targetId, value, role
        output_dir: директория для файлов
        stem: общее имя файлов

    Returns:
        Словарь {роль: путь к файлу} для непустых ролей
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = {}
    for role in EdgeRole:
        part = df[df['role'] == role.value]
        if part.empty:
            continue
        file_path = output_dir / f"{stem}.{role.value}"
        part[['sourceId', 'targetId', 'value']].to_csv(
            file_path, sep='\t', index=False, header=False
        )
        written[role.value] = file_path
        print(f"Сохранено {len(part)} ребер: {file_path}")

    return written
