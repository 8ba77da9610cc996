from __future__ import annotations

import itertools

import pytest

from mcstructure_glb.assembler import assemble, find_air_index, lattice_position
from mcstructure_glb.cache import MaterialCache
from mcstructure_glb.structure import BlockPaletteEntry, StructureDimensions


def _palette(*names):
    return [BlockPaletteEntry(name=n) for n in names]


def test_single_stone_next_to_air(fake_resolver):
    dims = StructureDimensions(2, 1, 1)
    result = assemble(dims, [0, 1], _palette("minecraft:air", "minecraft:stone"), MaterialCache(fake_resolver))

    assert result.placed == 1
    assert result.skipped == 1
    (instance,) = result.scene.instances
    assert instance.position == (1, 0, 0)
    assert instance.materials.block_name == "minecraft:stone"


def test_full_cube_places_every_cell_once(fake_resolver):
    dims = StructureDimensions(2, 2, 2)
    cache = MaterialCache(fake_resolver)
    result = assemble(dims, [0] * 8, _palette("minecraft:stone"), cache)

    positions = [inst.position for inst in result.scene.instances]
    assert result.placed == 8
    assert sorted(positions) == sorted(itertools.product(range(2), repeat=3))
    assert fake_resolver.calls == ["minecraft:stone"]
    assert len({id(inst.materials) for inst in result.scene.instances}) == 1


def test_instances_follow_flat_index_order(fake_resolver):
    dims = StructureDimensions(2, 2, 3)
    result = assemble(dims, list(range(12)), _palette(*[f"minecraft:b{i}" for i in range(12)]), MaterialCache(fake_resolver))

    names = [inst.materials.block_name for inst in result.scene.instances]
    assert names == [f"minecraft:b{i}" for i in range(12)]


@pytest.mark.parametrize("w, h, d", [(1, 1, 1), (3, 1, 1), (1, 4, 1), (1, 1, 5), (2, 3, 4), (5, 2, 3)])
def test_lattice_position_is_a_bijection(w, h, d):
    dims = StructureDimensions(w, h, d)
    seen = set()
    for i in range(dims.volume):
        x, y, z = lattice_position(i, dims)
        assert 0 <= x < w and 0 <= y < h and 0 <= z < d
        assert x * h * d + y * d + z == i
        seen.add((x, y, z))
    assert len(seen) == dims.volume


def test_z_is_the_fastest_axis():
    dims = StructureDimensions(2, 2, 2)
    assert [lattice_position(i, dims) for i in range(4)] == [(0, 0, 0), (0, 0, 1), (0, 1, 0), (0, 1, 1)]
    assert lattice_position(4, dims) == (1, 0, 0)


def test_placed_plus_skipped_equals_volume(fake_resolver):
    dims = StructureDimensions(3, 2, 2)
    grid = [0, 1, 2, -1, 7, 1, 0, 2, -5, 1, 1, 0]
    result = assemble(dims, grid, _palette("minecraft:air", "minecraft:stone", "minecraft:dirt"), MaterialCache(fake_resolver))

    assert result.placed + result.skipped == dims.volume
    assert result.placed == 6
    assert len(result.scene) == result.placed


def test_palette_without_air_skips_only_sentinels(fake_resolver):
    dims = StructureDimensions(4, 1, 1)
    palette = _palette("minecraft:stone", "minecraft:dirt")
    assert find_air_index(palette) is None

    result = assemble(dims, [0, -1, 1, 9], palette, MaterialCache(fake_resolver))

    assert result.placed == 2
    assert [inst.position for inst in result.scene.instances] == [(0, 0, 0), (2, 0, 0)]


def test_empty_palette_name_is_skipped(fake_resolver):
    dims = StructureDimensions(2, 1, 1)
    result = assemble(dims, [0, 1], _palette("", "minecraft:stone"), MaterialCache(fake_resolver))

    assert result.placed == 1
    assert fake_resolver.calls == ["minecraft:stone"]


def test_custom_air_name(fake_resolver):
    dims = StructureDimensions(2, 1, 1)
    result = assemble(
        dims,
        [0, 1],
        _palette("minecraft:structure_void", "minecraft:stone"),
        MaterialCache(fake_resolver),
        air_name="minecraft:structure_void",
    )
    assert result.placed == 1


def test_short_grid_counts_missing_cells_as_skipped(fake_resolver):
    dims = StructureDimensions(2, 2, 1)
    result = assemble(dims, [0, 0], _palette("minecraft:stone"), MaterialCache(fake_resolver))

    assert result.placed == 2
    assert result.skipped == 2


def test_parallel_prefetch_keeps_order_and_single_resolution(fake_resolver):
    dims = StructureDimensions(4, 2, 3)
    grid = [i % 5 for i in range(dims.volume)]
    palette = _palette("minecraft:air", "minecraft:stone", "minecraft:dirt", "minecraft:sand", "minecraft:glass")

    serial = assemble(dims, grid, palette, MaterialCache(fake_resolver))
    fake_resolver.calls.clear()
    parallel = assemble(dims, grid, palette, MaterialCache(fake_resolver), workers=4)

    assert sorted(fake_resolver.calls) == ["minecraft:dirt", "minecraft:glass", "minecraft:sand", "minecraft:stone"]
    assert [(i.position, i.materials.block_name) for i in parallel.scene.instances] == [
        (i.position, i.materials.block_name) for i in serial.scene.instances
    ]


def test_lone_stone_sits_at_origin(fake_resolver):
    result = assemble(StructureDimensions(1, 1, 1), [1], _palette("minecraft:air", "minecraft:stone"), MaterialCache(fake_resolver))

    (instance,) = result.scene.instances
    assert instance.position == (0, 0, 0)
    assert instance.materials.block_name == "minecraft:stone"
    assert (result.placed, result.skipped) == (1, 0)
