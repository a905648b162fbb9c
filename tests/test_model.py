import pytest

from tilemesh import (
    CollectingDiagnostics,
    EllipseShape,
    Frame,
    Layer,
    Map,
    MissingTileError,
    ObjectGroup,
    Properties,
    TileImage,
    decode_raw_tile_id,
    encode_raw_tile_id,
)
from tilemesh.model import shape_world_bounds, RectangleShape


class TestRawTileIds:

    def test_decode_flags(self):
        raw = 0x80000000 | 0x20000000 | 5
        assert decode_raw_tile_id(raw) == (5, True, True, False)

    def test_encode_matches_decode(self):
        raw = encode_raw_tile_id(42, diagonal=True, vertical=True)
        assert decode_raw_tile_id(raw) == (42, True, False, True)

    def test_plain_id(self):
        assert decode_raw_tile_id(3) == (3, False, False, False)


class TestProperties:

    def test_bool_values(self):
        props = Properties({"a": "true", "b": "False", "c": "1"})
        assert props.get_bool("a") is True
        assert props.get_bool("b") is False
        assert props.get_bool("c") is True

    def test_missing_bool_uses_default(self):
        assert Properties().get_bool("missing", True) is True

    def test_malformed_bool_warns_and_defaults(self):
        diagnostics = CollectingDiagnostics()
        props = Properties({"unity:collisionOnly": "maybe"})
        assert props.get_bool("unity:collisionOnly", False, diagnostics) is False
        assert len(diagnostics.warnings) == 1
        assert "maybe" in diagnostics.warnings[0]

    def test_int_and_string(self):
        props = Properties({"n": "12", "s": "text"})
        assert props.get_int("n") == 12
        assert props.get_int("other", 4) == 4
        assert props.get_string("s") == "text"
        assert "s" in props


class TestLayer:

    def test_from_rows(self):
        layer = Layer.from_rows("Ground", [[1, 2, 3], [4, 5, 6]])
        assert (layer.width, layer.height) == (3, 2)
        assert layer.get_tile_id_at(2, 1) == 6

    def test_tile_id_strips_flags(self):
        layer = Layer.from_rows("Ground", [[encode_raw_tile_id(7, horizontal=True)]])
        assert layer.get_tile_id_at(0, 0) == 7

    def test_wrong_cell_count(self):
        with pytest.raises(ValueError):
            Layer("Ground", 2, 2, [1, 2, 3])


class TestMap:

    def test_unique_layer_names(self):
        layers = [Layer.from_rows(name, [[0]]) for name in ("Ground", "Ground", "Top", "Ground")]
        tmx_map = Map(1, 1, 32, 32, layers=layers)
        assert [l.unique_name for l in tmx_map.layers] == ["Ground", "Ground_2", "Top", "Ground_3"]

    def test_unique_names_skip_existing(self):
        layers = [Layer.from_rows(name, [[0]]) for name in ("Ground_2", "Ground", "Ground")]
        tmx_map = Map(1, 1, 32, 32, layers=layers)
        assert [l.unique_name for l in tmx_map.layers] == ["Ground_2", "Ground", "Ground_3"]

    def test_missing_tile(self):
        tmx_map = Map(1, 1, 32, 32)
        with pytest.raises(MissingTileError) as exc:
            tmx_map.get_tile(9, "somewhere")
        assert "9" in str(exc.value)
        assert "somewhere" in str(exc.value)

    def test_map_position(self):
        tmx_map = Map(4, 4, 16, 8)
        assert tmx_map.get_map_position_at(2, 3) == (32, 24)
        assert tmx_map.pixel_size == (64, 32)

    def test_object_group_names_are_separate_from_layers(self):
        groups = [ObjectGroup("Ground"), ObjectGroup("Ground")]
        tmx_map = Map(1, 1, 32, 32, layers=[Layer.from_rows("Ground", [[0]])], object_groups=groups)
        assert tmx_map.layers[0].unique_name == "Ground"
        assert [g.unique_name for g in tmx_map.object_groups] == ["Ground", "Ground_2"]

    def test_reassigning_names_is_stable(self):
        tmx_map = Map(1, 1, 32, 32, layers=[Layer.from_rows("Ground", [[0]])])
        tmx_map.layers.append(Layer.from_rows("Ground", [[0]]))
        tmx_map.assign_unique_names()
        tmx_map.assign_unique_names()
        assert [l.unique_name for l in tmx_map.layers] == ["Ground", "Ground_2"]


class TestMisc:

    def test_image_name_is_stem(self):
        assert TileImage("a/b/terrain.png", 10, 10).name == "terrain"

    def test_frame_ids_increase(self):
        first, second = Frame(1), Frame(1)
        assert second.unique_frame_id > first.unique_frame_id

    def test_circle(self):
        assert EllipseShape(width=10, height=10).is_circle()
        assert not EllipseShape(width=10, height=5).is_circle()

    def test_world_bounds_with_rotation(self):
        rect = RectangleShape(x=100, y=100, width=10, height=20, rotation=90)
        minx, miny, maxx, maxy = shape_world_bounds(rect)
        assert minx == pytest.approx(80)
        assert miny == pytest.approx(100)
        assert maxx == pytest.approx(100)
        assert maxy == pytest.approx(110)
