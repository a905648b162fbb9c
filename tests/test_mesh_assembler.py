import pytest

from tilemesh import (
    CollectingDiagnostics,
    ExportConfig,
    Layer,
    Map,
    MissingImageError,
    MissingTileError,
    Properties,
    Tile,
    TileImage,
    build_mesh,
)
from tilemesh.mesh_assembler import sanitize_mesh_name


def parse_obj(text):
    """Splits OBJ text into vertex, texcoord, normal, group and face lines."""
    parsed = {"v": [], "vt": [], "vn": [], "g": [], "f": []}
    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        key, _, rest = line.partition(" ")
        parsed[key].append(rest)
    return parsed


class TestBuildMesh:

    def test_two_by_two_map(self, make_map):
        mesh = build_mesh(make_map([[1, 1], [1, 1]]))
        assert len(mesh.groups) == 1
        assert mesh.face_count == 4
        # A 3x3 lattice of corners shared by the four quads
        assert len(mesh.vertices) == 9
        assert len(mesh.vertices) < 16
        assert len(mesh.texture_coordinates) == 4

    def test_output_is_deterministic(self, make_map, animated_tiles):
        rows = [[1, 10, 0], [0x80000001, 1, 10]]
        first = build_mesh(make_map(rows, tiles=animated_tiles))
        second = build_mesh(make_map(rows, tiles=animated_tiles))
        assert first.text == second.text
        assert len(first.vertices) == len(second.vertices)
        assert len(first.texture_coordinates) == len(second.texture_coordinates)

    def test_face_lines_reference_pools(self, make_map, animated_tiles):
        mesh = build_mesh(make_map([[1, 10], [0x40000001, 2]], tiles=animated_tiles))
        parsed = parse_obj(mesh.text)
        assert len(parsed["v"]) == len(mesh.vertices)
        assert len(parsed["vt"]) == len(mesh.texture_coordinates)
        assert len(parsed["f"]) == mesh.face_count
        for face in parsed["f"]:
            refs = face.split()
            assert len(refs) == 4
            pairs = set()
            for ref in refs:
                vi, ti, ni = (int(i) for i in ref.split("/"))
                assert 1 <= vi <= len(parsed["v"])
                assert 1 <= ti <= len(parsed["vt"])
                assert ni == 1
                pairs.add((vi, ti))
            assert len(pairs) == 4

    def test_text_layout(self, make_map):
        mesh = build_mesh(make_map([[1]]), ExportConfig(texel_bias=0))
        lines = mesh.text.splitlines()
        assert lines[0].startswith("# ")
        assert lines.count("vn 0 0 -1") == 1
        assert "v 0 -32 0" in lines
        assert "vt 0 0.5" in lines
        assert "f 1/1/1 2/2/1 3/3/1 4/4/1" in lines
        assert lines.index("vn 0 0 -1") < lines.index("g Ground-terrain")
        assert mesh.text.endswith("\n")

    def test_bias_in_text(self, make_map):
        mesh = build_mesh(make_map([[1]]), ExportConfig(texel_bias=8192))
        vt = parse_obj(mesh.text)["vt"]
        assert "0.0001220703125 0.5001220703125" in vt

    def test_empty_map(self):
        mesh = build_mesh(Map(0, 0, 32, 32))
        assert mesh.vertices == []
        assert mesh.texture_coordinates == []
        assert mesh.groups == []
        assert "vn 0 0 -1" in mesh.text

    def test_empty_cells_skipped(self, make_map):
        mesh = build_mesh(make_map([[0, 1], [0, 0]]))
        assert mesh.face_count == 1


class TestLayerSelection:

    def test_invisible_and_collision_only_layers(self, make_map):
        layers = [
            Layer.from_rows("Ground", [[1]]),
            Layer.from_rows("Hidden", [[1]], visible=False),
            Layer.from_rows("Walls", [[2]], properties=Properties({"unity:collisionOnly": "true"})),
        ]
        mesh = build_mesh(make_map([[1]], layers=layers))
        assert [g.layer_name for g in mesh.groups] == ["Ground"]

    def test_custom_collision_only_property(self, make_map):
        layers = [Layer.from_rows("Walls", [[2]], properties=Properties({"noMesh": "true"}))]
        mesh = build_mesh(make_map([[2]], layers=layers), ExportConfig(collision_only_property="noMesh"))
        assert mesh.groups == []

    def test_malformed_collision_only_warns(self, make_map):
        diagnostics = CollectingDiagnostics()
        layers = [Layer.from_rows("Ground", [[1]], properties=Properties({"unity:collisionOnly": "yes please"}))]
        mesh = build_mesh(make_map([[1]], layers=layers), diagnostics=diagnostics)
        assert mesh.face_count == 1
        assert len(diagnostics.warnings) == 1


class TestGrouping:

    def test_group_per_layer_and_image(self, make_map, terrain_image):
        other = Tile(3, 32, 32, TileImage("tilesets/props.png", 32, 32))
        layers = [Layer.from_rows("Ground", [[1, 3]]), Layer.from_rows("Top", [[3, 1]])]
        mesh = build_mesh(make_map([[1, 3]], tiles={3: other}, layers=layers))
        assert [g.name for g in mesh.groups] == [
            "Ground-terrain", "Ground-props", "Top-props", "Top-terrain",
        ]
        assert all(len(g.faces) == 1 for g in mesh.groups)

    def test_duplicate_layer_names(self, make_map):
        layers = [Layer.from_rows("Ground", [[1]]), Layer.from_rows("Ground", [[1]])]
        mesh = build_mesh(make_map([[1]], layers=layers))
        assert [g.name for g in mesh.groups] == ["Ground-terrain", "Ground_2-terrain"]

    def test_sanitized_names_disambiguated(self, make_map):
        layers = [Layer.from_rows("a b", [[1]]), Layer.from_rows("a_b", [[1]])]
        mesh = build_mesh(make_map([[1]], layers=layers))
        assert [g.name for g in mesh.groups] == ["a_b-terrain", "a_b-terrain_2"]

    def test_sanitize(self):
        assert sanitize_mesh_name("my layer!-tiles.v2") == "my_layer_-tiles_v2"


class TestDrawOrder:

    def test_reversed_horizontal(self, make_map):
        mesh = build_mesh(make_map([[1, 1]], draw_order_horizontal=-1))
        first_face = mesh.groups[0].faces[0]
        assert first_face.vertices[0][0] == 32

    def test_reversed_vertical(self, make_map):
        mesh = build_mesh(make_map([[1], [1]], draw_order_vertical=-1))
        first_face = mesh.groups[0].faces[0]
        assert first_face.vertices[0][1] == -64


class TestAnimation:

    def test_frame_faces(self, make_map, animated_tiles):
        mesh = build_mesh(make_map([[10]], tiles=animated_tiles))
        assert mesh.face_count == 3
        depths = [f.vertices[0][2] for f in mesh.groups[0].faces]
        assert depths == [7, -8, -9]
        # Each frame is its own quad at its own depth
        assert len(mesh.vertices) == 12


class TestFailures:

    def test_unknown_tile(self, make_map):
        with pytest.raises(MissingTileError):
            build_mesh(make_map([[1, 77]]))

    def test_missing_image(self, make_map):
        with pytest.raises(MissingImageError) as exc:
            build_mesh(make_map([[5]], tiles={5: Tile(5, 32, 32)}))
        assert exc.value.tile_id == 5
