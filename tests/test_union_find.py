from sfmgraph.union_find import UnionFind


def test_new_element_is_own_root():
    uf = UnionFind()
    assert uf.find(7) == 7


def test_union_joins_sets_with_root_of_second():
    uf = UnionFind()
    uf.union(1, 2)
    assert uf.find(1) == 2
    assert uf.find(2) == 2


def test_union_is_transitive():
    uf = UnionFind()
    uf.union(1, 2)
    uf.union(3, 4)
    assert uf.find(1) != uf.find(3)
    uf.union(2, 3)
    assert uf.find(1) == uf.find(4)


def test_long_chain_compresses_to_same_root():
    uf = UnionFind()
    for i in range(2000):
        uf.union(i, i + 1)
    roots = {uf.find(i) for i in range(2001)}
    assert roots == {2000}


def test_clear_forgets_unions():
    uf = UnionFind()
    uf.union("a", "b")
    uf.clear()
    assert uf.find("a") == "a"
    assert uf.find("b") == "b"


def test_union_of_same_set_is_noop():
    uf = UnionFind()
    uf.union(1, 2)
    uf.union(2, 1)
    assert uf.find(1) == uf.find(2) == 2