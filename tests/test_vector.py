import pytest

from codetect.vector import (
    BruteForceVectorDB,
    DistanceMetric,
    cosine_distance,
    euclidean_distance,
    manhattan_distance,
    negative_dot_product,
    sqrt32,
)


def test_insert_and_search():
    vdb = BruteForceVectorDB()
    vdb.create_vector_index("test", 3, DistanceMetric.COSINE)
    vdb.insert_vectors(
        "test",
        [1, 2, 3, 4],
        [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [1.0, 1.0, 0.0]],
    )
    results = vdb.search_knn("test", [1.0, 0.0, 0.0], 3)
    assert len(results) == 3
    assert results[0].id == 1
    assert results[0].distance <= 0.01
    assert results[0].score == pytest.approx(1.0, abs=1e-6)
    assert results[1].id == 4
    assert [r.distance for r in results] == sorted(r.distance for r in results)


def test_delete():
    vdb = BruteForceVectorDB()
    vdb.create_vector_index("test", 2, DistanceMetric.COSINE)
    vdb.insert_vector("test", 1, [1.0, 0.0])
    vdb.insert_vector("test", 2, [0.0, 1.0])
    assert len(vdb.search_knn("test", [1.0, 0.0], 10)) == 2
    vdb.delete_vector("test", 1)
    results = vdb.search_knn("test", [1.0, 0.0], 10)
    assert [r.id for r in results] == [2]


def test_delete_vectors():
    vdb = BruteForceVectorDB()
    vdb.insert_vectors("test", [1, 2, 3], [[1.0], [2.0], [3.0]])
    vdb.delete_vectors("test", [1, 3, 99])
    assert [r.id for r in vdb.search_knn("test", [1.0], 10)] == [2]


def test_empty_index_returns_nothing():
    assert BruteForceVectorDB().search_knn("nonexistent", [1.0, 0.0], 10) == []


def test_supports_native_search():
    assert BruteForceVectorDB().supports_native_search() is False


def test_insert_copies_vector():
    vdb = BruteForceVectorDB()
    vdb.create_vector_index("test", 2, DistanceMetric.EUCLIDEAN)
    vector = [3.0, 4.0]
    vdb.insert_vector("test", 1, vector)
    vector[0] = 100.0
    assert vdb.search_knn("test", [0.0, 0.0], 1)[0].distance == pytest.approx(5.0, abs=0.01)


def test_default_metric_is_cosine():
    vdb = BruteForceVectorDB()
    vdb.insert_vector("test", 1, [1.0, 0.0])
    vdb.insert_vector("test", 2, [0.0, 5.0])
    results = vdb.search_knn("test", [1.0, 0.0], 2)
    assert [r.id for r in results] == [1, 2]
    assert results[1].distance == pytest.approx(1.0, abs=1e-4)


def test_manhattan_metric_orders_results():
    vdb = BruteForceVectorDB()
    vdb.create_vector_index("m", 2, DistanceMetric.MANHATTAN)
    vdb.insert_vectors("m", [1, 2], [[3.0, 4.0], [1.0, 1.0]])
    results = vdb.search_knn("m", [0.0, 0.0], 2)
    assert [(r.id, r.distance) for r in results] == [(2, 2.0), (1, 7.0)]


def test_k_larger_than_stored_is_clamped():
    vdb = BruteForceVectorDB()
    vdb.insert_vectors("t", [1, 2], [[1.0], [2.0]])
    assert len(vdb.search_knn("t", [1.0], 50)) == 2


def test_insert_vectors_requires_enough_vectors():
    with pytest.raises(ValueError):
        BruteForceVectorDB().insert_vectors("t", [1, 2], [[1.0]])


@pytest.mark.parametrize(
    "metric, name",
    [
        (DistanceMetric.COSINE, "cosine"),
        (DistanceMetric.EUCLIDEAN, "euclidean"),
        (DistanceMetric.DOT_PRODUCT, "dot_product"),
        (DistanceMetric.MANHATTAN, "manhattan"),
    ],
)
def test_distance_metric_str(metric, name):
    assert str(metric) == name


def test_distance_metric_out_of_range():
    with pytest.raises(ValueError):
        DistanceMetric(99)


def test_cosine_distance():
    a = [1.0, 0.0, 0.0]
    assert cosine_distance(a, a) <= 0.0001
    assert cosine_distance(a, [0.0, 1.0, 0.0]) == pytest.approx(1.0, abs=0.0001)
    assert cosine_distance(a, [-1.0, 0.0, 0.0]) == pytest.approx(2.0, abs=0.0001)


def test_cosine_distance_zero_vector():
    assert cosine_distance([0.0, 0.0], [1.0, 0.0]) == 1.0


def test_euclidean_distance():
    assert euclidean_distance([0.0, 0.0, 0.0], [3.0, 4.0, 0.0]) == pytest.approx(5.0, abs=0.01)


def test_manhattan_distance():
    assert manhattan_distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(7.0, abs=0.0001)


def test_negative_dot_product():
    assert negative_dot_product([1.0, 2.0], [3.0, 4.0]) == pytest.approx(-11.0)


@pytest.mark.parametrize("value, root", [(0, 0), (1, 1), (4, 2), (9, 3), (25, 5)])
def test_sqrt32(value, root):
    assert sqrt32(value) == pytest.approx(root, abs=0.001)


def test_sqrt32_negative_is_zero():
    assert sqrt32(-4.0) == 0.0