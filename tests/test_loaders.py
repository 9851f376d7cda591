"""Тесты для загрузчиков и препроцессинга ребер."""

import pandas as pd
import pytest

from biassgd.data import (
    EdgeListLoader,
    MovieLensLoader,
    compute_global_mean,
    get_loader,
    get_statistics,
    parse_edge_line,
    remap_target_ids,
    remove_duplicates,
    unmap_target_id,
    write_edge_list,
)
from biassgd.errors import EdgeParseError
from biassgd.models import EdgeRole


class TestParseEdgeLine:

    @pytest.mark.parametrize("line, expected", [
        ("1 2 3.5", (1, 2, 3.5)),
        ("1\t2\t3.5\n", (1, 2, 3.5)),
        ("1,2,4", (1, 2, 4.0)),
        ("  7 , 8 , -1e-3  ", (7, 8, -0.001)),
        ("3 4", (3, 4, 0.0)),
        ("3,4\n", (3, 4, 0.0)),
    ])
    def test_valid_lines(self, line, expected):
        assert parse_edge_line(line) == pytest.approx(expected)

    @pytest.mark.parametrize("line", [
        "a b 1",
        "1",
        "1 2 x",
        "-1 2 3",
        "1 2 3 garbage",
    ])
    def test_invalid_lines(self, line):
        assert parse_edge_line(line) is None


class TestEdgeRole:

    @pytest.mark.parametrize("filename, role", [
        ("ratings.train", EdgeRole.TRAIN),
        ("ratings", EdgeRole.TRAIN),
        ("ratings.validate", EdgeRole.VALIDATE),
        ("ratings.predict", EdgeRole.PREDICT),
    ])
    def test_role_from_suffix(self, filename, role):
        assert EdgeRole.from_filename(filename) is role


class TestEdgeListLoader:

    def test_load_directory(self, edge_dir):
        df = EdgeListLoader().load(edge_dir)

        assert list(df.columns) == ['sourceId', 'targetId', 'value', 'role']
        assert len(df) == 12
        counts = df['role'].value_counts()
        assert counts['train'] == 8
        assert counts['validate'] == 2
        assert counts['predict'] == 2
        assert (df.loc[df['role'] == 'predict', 'value'] == 0.0).all()

    def test_load_single_file(self, edge_dir):
        df = EdgeListLoader().load(edge_dir / "ratings.validate")
        assert len(df) == 2
        assert (df['role'] == 'validate').all()

    def test_strict_mode_raises(self, tmp_path):
        path = tmp_path / "bad.train"
        path.write_text("1 2 3\n\nnot an edge\n")

        with pytest.raises(EdgeParseError) as excinfo:
            EdgeListLoader(strict=True).load(path)
        assert excinfo.value.line_number == 3

    def test_lenient_mode_skips(self, tmp_path):
        path = tmp_path / "bad.train"
        path.write_text("1 2 3\nnot an edge\n4 5 6\n")

        loader = EdgeListLoader()
        df = loader.load(path)

        assert len(df) == 2
        assert loader.skipped_lines == 1

    def test_remap_target(self, edge_dir):
        df = EdgeListLoader(remap_target=True).load(edge_dir / "ratings.train")

        assert (df['targetId'] <= -2).all()
        assert sorted(df['targetId'].unique()) == [-14, -13, -12]

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EdgeListLoader().load(tmp_path / "missing")


class TestMovieLensLoader:

    def test_roles_assigned(self, tmp_path):
        ratings = pd.DataFrame({
            'userId': [u for u in range(10) for _ in range(10)],
            'movieId': [m for _ in range(10) for m in range(100, 110)],
            'rating': [float(1 + (u + m) % 5) for u in range(10) for m in range(10)],
            'timestamp': 0,
        })
        ratings.to_csv(tmp_path / "ratings.csv", index=False)

        df = MovieLensLoader(valid_ratio=0.2, predict_ratio=0.1, seed=0).load(tmp_path)

        assert len(df) == 100
        assert set(df['role']) <= {'train', 'validate', 'predict'}
        assert (df['role'] == 'train').sum() > 0
        assert (df['role'] == 'validate').sum() > 0

    def test_invalid_ratios(self):
        with pytest.raises(ValueError):
            MovieLensLoader(valid_ratio=0.6, predict_ratio=0.5)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MovieLensLoader().load(tmp_path)


class TestRegistry:

    def test_get_loader(self):
        assert isinstance(get_loader('edgelist', strict=True), EdgeListLoader)
        assert isinstance(get_loader('movie_lens'), MovieLensLoader)

    def test_unknown_loader(self):
        with pytest.raises(ValueError):
            get_loader('netflix')


class TestPreprocessing:

    def test_remove_duplicates_keeps_last(self):
        df = pd.DataFrame({
            'sourceId': [1, 1, 1],
            'targetId': [2, 2, 2],
            'value': [1.0, 2.0, 3.0],
            'role': ['train', 'train', 'validate'],
        })
        result = remove_duplicates(df)

        assert len(result) == 2
        assert result.loc[result['role'] == 'train', 'value'].item() == 2.0

    def test_remap_roundtrip(self):
        df = pd.DataFrame({'targetId': [0, 5]})
        remapped = remap_target_ids(df)

        assert list(remapped['targetId']) == [-2, -7]
        assert [unmap_target_id(t) for t in remapped['targetId']] == [0, 5]

    def test_global_mean(self, edge_dir):
        df = EdgeListLoader().load(edge_dir)
        assert compute_global_mean(df) == pytest.approx(3.0)

        with pytest.raises(ValueError):
            compute_global_mean(df[df['role'] != 'train'])

    def test_statistics(self, edge_dir):
        stats = get_statistics(EdgeListLoader().load(edge_dir))

        assert stats['n_rows'] == 4
        assert stats['n_cols'] == 3
        assert stats['n_edges'] == 12
        assert stats['n_train'] == 8
        assert stats['sparsity'] == pytest.approx(0.0)


def test_write_edge_list_is_loadable(edge_dir, tmp_path):
    df = EdgeListLoader().load(edge_dir)
    written = write_edge_list(df, tmp_path / "out")

    assert set(written) == {'train', 'validate', 'predict'}
    reloaded = EdgeListLoader().load(tmp_path / "out")
    assert len(reloaded) == len(df)
    assert reloaded['role'].value_counts().to_dict() == df['role'].value_counts().to_dict()
