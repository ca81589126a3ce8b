from projectpro.core.scheduling import would_create_cycle


def test_self_dependency_is_a_cycle():
    assert would_create_cycle([], "a", "a")


def test_independent_edge():
    assert not would_create_cycle([("b", "c")], "a", "b")


def test_direct_back_edge():
    # b already depends on a
    assert would_create_cycle([("b", "a")], "a", "b")


def test_transitive_cycle():
    edges = [("b", "c"), ("c", "d"), ("d", "a")]
    assert would_create_cycle(edges, "a", "b")


def test_diamond_is_not_a_cycle():
    edges = [("d", "b"), ("d", "c"), ("b", "a"), ("c", "a")]
    assert not would_create_cycle(edges, "e", "d")
