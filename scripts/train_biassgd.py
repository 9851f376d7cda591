"""
Скрипт для обучения Bias-SGD на матрице из edge-list файлов.

Использование:
    python scripts/train_biassgd.py data/netflix --D 20 --max_iter 10
    python scripts/train_biassgd.py data/ml --loader movie_lens --engine asynchronous --plot
    python scripts/train_biassgd.py data/ml_edges --remap_target

Для movie_lens id фильмов переносятся автоматически. Edge-list директорию
из scripts/prepare_data.py нужно обучать с --remap_target, так как id строк
и колонок в ней пересекаются.
"""

import sys
import json
import argparse
from pathlib import Path

# Определяем корневую директорию проекта
script_dir = Path(__file__).resolve().parent
project_root = script_dir.parent

# Добавляем корень проекта в PYTHONPATH
sys.path.insert(0, str(project_root))

from biassgd.config import load_config
from biassgd.data import RatingDataset
from biassgd.training import BiasSGDTrainer


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bias-SGD факторизация матрицы"
    )

    parser.add_argument("matrix", type=str,
                        help="Директория (или файл) с матрицей")
    parser.add_argument("--config", type=str,
                        default=str(project_root / "config" / "biassgd.yaml"),
                        help="YAML файл конфигурации")
    parser.add_argument("--D", dest="latent_dim", type=int, default=None,
                        help="Количество латентных параметров")
    parser.add_argument("--engine", type=str, default=None,
                        choices=["synchronous", "asynchronous"],
                        help="Тип движка")
    parser.add_argument("--max_iter", dest="max_updates", type=int, default=None,
                        help="Максимальное количество обновлений одной вершины")
    parser.add_argument("--lambda", dest="lambda", type=float, default=None,
                        help="Вес регуляризации SGD")
    parser.add_argument("--gamma", type=float, default=None,
                        help="Шаг SGD")
    parser.add_argument("--debug", action="store_true", default=None,
                        help="Подробный вывод, латентные векторы из единиц")
    parser.add_argument("--maxval", dest="max_val", type=float, default=None,
                        help="Максимальное значение предсказания")
    parser.add_argument("--minval", dest="min_val", type=float, default=None,
                        help="Минимальное значение предсказания")
    parser.add_argument("--step_dec", type=float, default=None,
                        help="Множитель уменьшения шага")
    parser.add_argument("--interval", type=float, default=None,
                        help="Секунды между отчетами об ошибке")
    parser.add_argument("--report_every", type=int, default=None,
                        help="Отчет на каждом N-м вызове агрегатора")
    parser.add_argument("--predictions", type=str, default=None,
                        help="Префикс (папка и имя файла) для сохранения предсказаний")
    parser.add_argument("--output", type=str, default=None,
                        help="Директория для результатов (метрики, график, чекпоинт)")
    parser.add_argument("--loader", type=str, default=None,
                        help="Загрузчик данных (edgelist, movie_lens)")
    parser.add_argument("--remap_target", action="store_true", default=None,
                        help="Перенести id колонок в отдельное пространство")
    parser.add_argument("--max_iterations", type=int, default=None,
                        help="Ограничение числа итераций движка")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed для воспроизводимости")
    parser.add_argument("--plot", action="store_true",
                        help="Сохранить график сходимости в --output")

    return parser.parse_args(argv)


def main(argv=None):
    """Главная функция."""
    args = parse_args(argv)

    overrides = {
        key: value for key, value in vars(args).items()
        if key not in ('matrix', 'config', 'output', 'plot')
    }
    config = load_config(args.config, overrides)

    output_dir = Path(args.output) if args.output else None
    if output_dir is not None and not config.get('checkpoint_dir'):
        config['checkpoint_dir'] = str(output_dir / "checkpoints")

    print(f"\n{'='*80}")
    print(f"BIAS-SGD: {args.matrix}")
    print(f"{'='*80}\n")

    try:
        # 1. Загружаем граф
        print("ШАГ 1: Загрузка графа")
        print("-" * 80)
        dataset = RatingDataset(args.matrix, config)
        graph = dataset.build_graph()
        print()

        # 2. Обучение
        print("ШАГ 2: Обучение")
        print("-" * 80)
        trainer = BiasSGDTrainer(graph, config)
        results = trainer.train()

        print("ФИНАЛЬНЫЕ МЕТРИКИ:")
        for metric_name, value in results['metrics'].items():
            print(f"  {metric_name:20s}: {value}")

        # 3. Сохраняем результаты
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            results_file = output_dir / "results.json"
            with open(results_file, 'w', encoding='utf-8') as f:
                json.dump({
                    'matrix': args.matrix,
                    'stats': dataset.stats,
                    **results
                }, f, indent=2, ensure_ascii=False)
            print(f"\n✅ Результаты сохранены: {results_file}")

            if args.plot:
                from biassgd.utils.visualization import plot_convergence
                plot_convergence(results['history'], output_file=str(output_dir / "convergence.png"))

        print(f"\n{'='*80}")
        print("ОБУЧЕНИЕ ЗАВЕРШЕНО УСПЕШНО!")
        print(f"{'='*80}\n")

    except Exception as e:
        print(f"\n❌ ОШИБКА: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
