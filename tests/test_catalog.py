import dataclasses

import pytest

from lattice.dungeon import catalog, generate_dungeon


def test_item_registry_is_read_only():
    with pytest.raises(TypeError):
        catalog.ITEMS["patch_kit"] = None  # type: ignore[index]


def test_templates_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        catalog.ENEMY_TEMPLATES[0].hp = 999  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        catalog.ITEMS["zero_day"].power = 1  # type: ignore[misc]


def test_tables_are_tuples():
    for table in (catalog.ROOM_TEMPLATES, catalog.ENEMY_TEMPLATES, catalog.NPC_TEMPLATES, catalog.ITEM_DEFS):
        assert isinstance(table, tuple)
        assert len(table) > 0


def test_every_room_template_has_variants_and_npcs_have_lines():
    assert all(len(t.descriptions) >= 2 for t in catalog.ROOM_TEMPLATES)
    assert all(t.lines for t in catalog.NPC_TEMPLATES)


def test_entrance_item_is_common_consumable():
    item = catalog.item(catalog.ENTRANCE_ITEM_ID)
    assert item.type == catalog.CONSUMABLE
    assert item.rarity == catalog.COMMON


def test_lookup_helpers():
    assert catalog.item("nope") is None
    assert catalog.item_name("stim_pack") == catalog.ITEMS["stim_pack"].name
    assert catalog.item_name("mystery") == "mystery"
    assert catalog.npc_template("Echo").name == "Echo"
    assert catalog.npc_template("Nobody") is None


def test_generation_leaves_catalog_untouched():
    before = [dataclasses.astuple(t) for t in catalog.ENEMY_TEMPLATES]
    d = generate_dungeon(555, 4)
    for room in d:
        if room.enemy:
            room.enemy.hp = -1
    assert [dataclasses.astuple(t) for t in catalog.ENEMY_TEMPLATES] == before
