import pytest

from hanclassifier.errors import ConsistencyError
from hanclassifier.level_tree import LevelTree


def path_factory(config, level, path):
    return path


class TestLevelTree:
    """Test the tree mirroring a classes hierarchy."""

    def test_build_mirrors_the_hierarchy(self, three_level_config):
        tree = LevelTree.build(three_level_config, path_factory)

        assert tree.item == ()
        assert sorted(tree.sub_levels) == [0, 1, 2]
        assert tree.sub_levels[1] is None
        assert tree.sub_level(0).sub_level(0).item == (0, 0)
        assert tree.depth == three_level_config.depth

    def test_items_in_pre_order(self, three_level_config):
        tree = LevelTree.build(three_level_config, path_factory)

        assert list(tree.items()) == [(), (0,), (0, 0), (2,)]
        assert len(tree) == 4

    def test_factory_receives_the_level(self, three_level_config):
        tree = LevelTree.build(three_level_config, lambda config, level, path: (level, len(config)))

        assert list(tree.items()) == [(0, 3), (1, 2), (2, 2), (1, 3)]

    def test_map_keeps_the_shape(self, three_level_config):
        tree = LevelTree.build(three_level_config, path_factory)
        mapped = tree.map(len)

        assert list(mapped.items()) == [0, 1, 2, 1]
        assert mapped.sub_levels.keys() == tree.sub_levels.keys()
        assert mapped.sub_levels[1] is None

    def test_find(self, three_level_config):
        tree = LevelTree.build(three_level_config, path_factory)

        assert tree.find([]) is tree
        assert tree.find([0, 0]).item == (0, 0)
        assert tree.find([1]) is None
        assert tree.find([0, 0, 1]) is None

    def test_find_undefined_path(self, three_level_config):
        tree = LevelTree.build(three_level_config, path_factory)

        with pytest.raises(ConsistencyError):
            tree.find([3])
        with pytest.raises(ConsistencyError):
            tree.find([1, 0])

    def test_sub_level_of_a_leaf(self, three_level_config):
        tree = LevelTree.build(three_level_config, path_factory)

        with pytest.raises(ConsistencyError):
            tree.sub_level(1)
        with pytest.raises(ConsistencyError):
            tree.sub_level(5)
