from layergraph.layout.forces import Body
from layergraph.layout.quadtree import QuadTree


def _bodies(coords) -> list[Body]:
    out = []
    for i, (x, y) in enumerate(coords):
        body = Body(f"b{i}", x=x, y=y)
        body.index = i
        out.append(body)
    return out


def _leaf_points(tree: QuadTree) -> list[list[Body]]:
    leaves = []

    def collect(quad) -> bool:
        if quad.is_leaf and quad.points:
            leaves.append(list(quad.points))
        return False

    tree.visit(collect)
    return leaves


def test_empty_tree_has_no_root() -> None:
    tree = QuadTree([])
    assert tree.root is None
    tree.visit(lambda q: False)


def test_every_point_lands_in_one_leaf() -> None:
    bodies = _bodies([(0, 0), (10, 10), (10, 0), (3, 7), (9.5, 9.5)])
    leaves = _leaf_points(QuadTree(bodies))
    placed = [b.id for leaf in leaves for b in leaf]
    assert sorted(placed) == sorted(b.id for b in bodies)


def test_coincident_points_share_a_leaf() -> None:
    bodies = _bodies([(5, 5), (5, 5), (1, 1)])
    leaves = _leaf_points(QuadTree(bodies))
    assert sorted(len(leaf) for leaf in leaves) == [1, 2]


def test_root_is_square_and_covers_points() -> None:
    tree = QuadTree(_bodies([(0, 0), (40, 10)]))
    root = tree.root
    assert root.x1 - root.x0 == root.y1 - root.y0 == 40


def test_visit_can_prune_children() -> None:
    tree = QuadTree(_bodies([(0, 0), (10, 10), (10, 0)]))
    seen = []
    tree.visit(lambda q: seen.append(q) or True)
    assert seen == [tree.root]


def test_visit_after_is_post_order() -> None:
    tree = QuadTree(_bodies([(0, 0), (10, 10)]))
    order = []
    tree.visit_after(order.append)
    assert order[-1] is tree.root
    assert len(order) == 3


def test_custom_key() -> None:
    bodies = _bodies([(0, 0), (1, 1)])
    bodies[0].vx = 100.0
    tree = QuadTree(bodies, key=lambda b: (b.x + b.vx, b.y + b.vy))
    assert tree.root.x1 - tree.root.x0 == 99
