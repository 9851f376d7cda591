"""
Загрузка конфигурации Bias-SGD.

YAML файл состоит из секций (model, training, execution, data, output),
которые сливаются в один плоский словарь. Значения по умолчанию
берутся из DEFAULT_CONFIG, параметры командной строки имеют приоритет.
"""

from pathlib import Path
from typing import Dict, Optional, Union

import yaml


DEFAULT_CONFIG = {
    # model
    'latent_dim': 20,
    'debug': False,
    # training
    'lambda': 0.001,
    'gamma': 0.001,
    'step_dec': 0.9,
    'min_val': 1e-100,
    'max_val': 1e100,
    'max_updates': 10,
    'interval': 0,
    'report_every': 2,
    # execution
    'engine': 'synchronous',
    'max_iterations': None,
    'seed': None,
    # data
    'loader': 'edgelist',
    'remap_target': False,
    'strict': False,
    'valid_ratio': 0.1,
    'predict_ratio': 0.0,
    # output
    'predictions': None,
    'checkpoint_dir': None,
}


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None
) -> Dict:
    """
    Загружает конфигурацию.

    Args:
        config_path: путь к YAML файлу (если None, только значения по умолчанию)
        overrides: словарь параметров, перекрывающих файл (None значения игнорируются)

    Returns:
        Плоский словарь конфигурации
    """
    config = dict(DEFAULT_CONFIG)

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Конфигурационный файл не найден: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}

        for key, value in raw.items():
            # Секции сливаются в общий словарь
            if isinstance(value, dict):
                config.update(value)
            else:
                config[key] = value

    if overrides:
        config.update({k: v for k, v in overrides.items() if v is not None})

    return config
