"""Map encoding and the map catalog."""
from __future__ import annotations

import msgpack
import numpy as np
import pytest

from robofill.core.grid import DistanceField, GridWorld
from robofill.constants import UNREACHABLE
from robofill.maps.catalog import MapCatalog, corridor, demo_map, hollow_cube, pillars, twin_rooms
from robofill.protocol import MapSpec


def _distances(spec: MapSpec) -> np.ndarray:
    grid = GridWorld(*spec.size)
    grid.walkable[...] = spec.to_array()
    grid.set_door(spec.start)
    return DistanceField(grid).bfs()


# ──────────────────────────── MapSpec ────────────────────────────────────────
def test_bitset_is_c_order_msb_first():
    walk = np.zeros((2, 2, 2), dtype=bool)
    walk[0, 0, 1] = True
    walk[1, 1, 1] = True
    spec = MapSpec.from_array("bits", walk, (0, 0, 1))
    assert spec.walkable == bytes([0b01000001])
    assert spec.size == (2, 2, 2)
    np.testing.assert_array_equal(spec.to_array(), walk)


def test_pack_and_unpack():
    spec = hollow_cube(4)
    clone = MapSpec.unpack(spec.pack())
    assert clone == spec
    assert isinstance(clone.size, tuple)


def test_unpack_rejects_missing_fields():
    blob = msgpack.packb({"name": "broken", "size": [2, 2, 2]}, use_bin_type=True)
    with pytest.raises(ValueError):
        MapSpec.unpack(blob)


def test_short_bitset_is_rejected():
    spec = MapSpec(name="short", size=(4, 4, 4), start=(0, 0, 0), walkable=b"\xff")
    with pytest.raises(ValueError):
        spec.to_array()


def test_from_array_needs_three_dimensions():
    with pytest.raises(ValueError):
        MapSpec.from_array("flat", np.ones((3, 3), dtype=bool), (0, 0, 0))


# ──────────────────────────── Generators ─────────────────────────────────────
def test_demo_map_layout():
    spec = demo_map()
    walk = spec.to_array()
    assert spec.size == (3, 4, 4)
    assert spec.start == (2, 1, 1)
    assert int(walk.sum()) == 5
    assert walk[spec.start]


@pytest.mark.parametrize(
    "spec", [demo_map(), hollow_cube(), corridor(), twin_rooms(), pillars()],
    ids=lambda s: s.name,
)
def test_every_walkable_cell_reachable_from_door(spec):
    walk = spec.to_array()
    assert walk[spec.start]
    dist = _distances(spec)
    assert not (walk & (dist == UNREACHABLE)).any()


def test_pillars_is_seeded():
    assert pillars(seed=3) == pillars(seed=3)
    assert pillars(seed=3).name == "pillars_3"


def test_hollow_cube_needs_an_interior():
    with pytest.raises(ValueError):
        hollow_cube(2)


# ──────────────────────────── Catalog ────────────────────────────────────────
def test_catalog_falls_back_to_first_map():
    catalog = MapCatalog.builtin()
    assert catalog.names()[0] == "demo"
    assert catalog.get(-1).name == "demo"
    assert catalog.get(len(catalog)).name == "demo"
    assert catalog.get(1).name == catalog.names()[1]


def test_empty_catalog_returns_none():
    assert MapCatalog().get(0) is None


def test_save_and_load_directory(tmp_path):
    catalog = MapCatalog.builtin()
    written = catalog.save(tmp_path / "maps")
    assert len(written) == len(catalog)

    (tmp_path / "maps" / "zzz_garbage.map").write_bytes(msgpack.packb([1, 2, 3]))
    (tmp_path / "maps" / "notes.txt").write_text("ignored")

    loaded = MapCatalog.from_dir(tmp_path / "maps")
    assert loaded.names() == catalog.names()
    assert loaded.get(2) == catalog.get(2)


def test_add_returns_index():
    catalog = MapCatalog()
    assert catalog.add(demo_map()) == 0
    assert catalog.add(corridor(4)) == 1
    assert catalog.names() == ["demo", "corridor"]


def test_directory_skips_map_with_short_bitset(tmp_path):
    bad = MapSpec(name="bad", size=(3, 3, 3), start=(0, 0, 0), walkable=b"\x00")
    (tmp_path / "000_bad.map").write_bytes(bad.pack())
    (tmp_path / "001_demo.map").write_bytes(demo_map().pack())

    loaded = MapCatalog.from_dir(tmp_path)
    assert loaded.names() == ["demo"]
