"""
Скрипт для подготовки данных.

Преобразует ratings.csv MovieLens в директорию edge-list файлов:
1. Загрузка рейтингов и случайное назначение ролей
2. Удаление дубликатов
3. Запись ratings.train / ratings.validate / ratings.predict
"""

import sys
from pathlib import Path

# Определяем корневую директорию проекта
script_dir = Path(__file__).resolve().parent
project_root = script_dir.parent

# Добавляем корень проекта в PYTHONPATH
sys.path.insert(0, str(project_root))

from biassgd.data import MovieLensLoader, remove_duplicates, get_statistics, write_edge_list


def prepare_dataset(
    ratings_path: str,
    output_dir: str,
    valid_ratio: float = 0.1,
    predict_ratio: float = 0.0,
    seed: int = 42
):
    """
    Подготавливает edge-list директорию из рейтингов MovieLens.

    Args:
        ratings_path: путь к ratings.csv или директории с ним
        output_dir: директория для edge-list файлов
        valid_ratio: доля validate ребер
        predict_ratio: доля predict ребер
        seed: seed разбиения
    """
    print(f"\n{'='*80}")
    print(f"ПОДГОТОВКА ДАННЫХ: {ratings_path}")
    print(f"{'='*80}\n")

    print("ШАГ 1: Загрузка рейтингов")
    # В edge-list файлах id неотрицательные, перенос делается при обучении
    loader = MovieLensLoader(remap_target=False, valid_ratio=valid_ratio, predict_ratio=predict_ratio, seed=seed)
    df = loader.load(Path(ratings_path))

    print("\nШАГ 2: Удаление дубликатов")
    df = remove_duplicates(df)

    print("\nШАГ 3: Запись edge-list файлов")
    written = write_edge_list(df, Path(output_dir))

    stats = get_statistics(df)
    print(f"\n{'='*80}")
    print("ПОДГОТОВКА ДАННЫХ ЗАВЕРШЕНА!")
    print(f"{'='*80}\n")
    print("СТАТИСТИКА:")
    print(f"  Строк: {stats['n_rows']}")
    print(f"  Колонок: {stats['n_cols']}")
    print(f"  Train: {stats['n_train']}")
    print(f"  Validate: {stats['n_validate']}")
    print(f"  Predict: {stats['n_predict']}")
    print(f"  Разреженность: {stats['sparsity']:.4f}")
    print()
    print("id пользователей и фильмов пересекаются, обучайте с --remap_target:")
    print(f"  python scripts/train_biassgd.py {output_dir} --remap_target")
    print()

    return written


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Подготовка edge-list данных для Bias-SGD")
    parser.add_argument("ratings", type=str, help="ratings.csv или директория с ним")
    parser.add_argument("output_dir", type=str, help="Директория для edge-list файлов")
    parser.add_argument("--valid_ratio", type=float, default=0.1)
    parser.add_argument("--predict_ratio", type=float, default=0.0)
    parser.add_argument("--seed", type=int, default=42)

    args = parser.parse_args()

    try:
        prepare_dataset(args.ratings, args.output_dir, args.valid_ratio, args.predict_ratio, args.seed)
        print(" Успешно!")
    except Exception as e:
        print(f" Ошибка: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
