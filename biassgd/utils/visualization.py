"""
Визуализация сходимости Bias-SGD.

Включает:
- Кривые train/validation RMSE по отчетам монитора
- Шаг обучения gamma на второй оси
"""

import matplotlib.pyplot as plt
import seaborn as sns
from typing import Dict, List, Optional

# Настройка стиля
sns.set_style("whitegrid")
sns.set_palette("husl")
plt.rcParams['figure.figsize'] = (12, 6)
plt.rcParams['font.size'] = 11


def plot_convergence(
    history: List[Dict],
    output_file: Optional[str] = None,
    title: Optional[str] = None
):
    """
    Создаёт график RMSE по отчетам монитора сходимости.

    Args:
        history: список отчетов {'train_rmse', 'validation_rmse', 'gamma', ...}
        output_file: путь для сохранения графика
        title: заголовок графика
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    if not history:
        ax.text(0.5, 0.5, 'No reports', ha='center', va='center',
                transform=ax.transAxes, fontsize=12)
    else:
        reports = list(range(1, len(history) + 1))
        train = [h['train_rmse'] for h in history]
        ax.plot(reports, train, linewidth=2, marker='o', markersize=4, label='train RMSE')

        validation = [h.get('validation_rmse') for h in history]
        if any(v is not None for v in validation):
            points = [(r, v) for r, v in zip(reports, validation) if v is not None]
            ax.plot([p[0] for p in points], [p[1] for p in points],
                    linewidth=2, marker='s', markersize=4, label='validation RMSE')

        ax.set_xlabel('Report', fontsize=12, fontweight='bold')
        ax.set_ylabel('RMSE', fontsize=12, fontweight='bold')
        ax.grid(alpha=0.3)

        # Шаг обучения на второй оси
        ax_gamma = ax.twinx()
        ax_gamma.plot(reports, [h['gamma'] for h in history], color='gray',
                      linestyle='--', linewidth=1, label='gamma')
        ax_gamma.set_ylabel('gamma', fontsize=12)
        ax_gamma.grid(False)

        lines, labels = ax.get_legend_handles_labels()
        lines_gamma, labels_gamma = ax_gamma.get_legend_handles_labels()
        ax.legend(lines + lines_gamma, labels + labels_gamma, loc='upper right')

    ax.set_title(title or 'Bias-SGD convergence', fontsize=14, fontweight='bold')

    plt.tight_layout()

    if output_file:
        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        print(f"График сохранён: {output_file}")
    else:
        plt.show()

    plt.close(fig)
