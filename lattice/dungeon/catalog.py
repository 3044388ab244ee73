"""Static content catalog: room, enemy, NPC and item templates.

Everything here is loaded once at import and shared by reference. Templates
are frozen dataclasses held in tuples, and the item index is a read-only
mapping proxy, so runtime code can only ever copy values out of the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

# Item types
CONSUMABLE = "CONSUMABLE"
WEAPON = "WEAPON"
KEY = "KEY"
TREASURE = "TREASURE"

# Rarity tiers
COMMON = "COMMON"
UNCOMMON = "UNCOMMON"
RARE = "RARE"

# Consumable effects
EFFECT_HEAL = "heal"
EFFECT_SHIELD = "shield"
EFFECT_XP = "xp"


@dataclass(frozen=True)
class RoomTemplate:
    theme: str
    name: str
    descriptions: Tuple[str, ...]


@dataclass(frozen=True)
class EnemyTemplate:
    name: str
    hp: int
    attack: int
    defense: int
    xp: int
    description: str


@dataclass(frozen=True)
class NpcTemplate:
    name: str
    personality: str
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class ItemDef:
    id: str
    name: str
    type: str
    power: int
    rarity: str
    base_drop_chance: float
    effect: str | None = None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "power": self.power,
            "rarity": self.rarity,
        }


ROOM_TEMPLATES: Tuple[RoomTemplate, ...] = (
    RoomTemplate(
        "archive",
        "Data Vault",
        (
            "Rows of humming storage racks stretch into darkness. Corrupted file headers flicker across the walls.",
            "A cold vault of sealed archives. Somewhere a checksum fails, over and over, like a heartbeat.",
            "Stacks of abandoned backups tower overhead, their labels dated from a decade nobody remembers.",
        ),
    ),
    RoomTemplate(
        "archive",
        "Cache Ruins",
        (
            "Fragments of stale cache litter the floor. Half-rendered pages drift past like leaves.",
            "The remains of a collapsed cache layer. Expired entries crunch underfoot.",
            "Broken pointers dangle from the ceiling, each one leading nowhere in particular.",
        ),
    ),
    RoomTemplate(
        "network",
        "Signal Junction",
        (
            "Four trunk lines meet in a crackling knot of light. Packets hiss past in every direction.",
            "A busy junction where routes cross and tangle. The air tastes of static.",
            "Routing tables scroll along the walls faster than you can read them.",
        ),
    ),
    RoomTemplate(
        "network",
        "Dead Relay",
        (
            "A relay station long since dropped from the routing tables. Its status LEDs blink a slow amber.",
            "The relay hums with traffic meant for hosts that no longer exist.",
            "Coiled cable and burnt-out repeaters. A single packet circles endlessly, looking for home.",
        ),
    ),
    RoomTemplate(
        "core",
        "Firewall Corridor",
        (
            "A narrow corridor lined with scanning lattices. Red beams sweep the floor in slow arcs.",
            "Rule tables are etched into the walls: DENY, DENY, DENY, ALLOW, DENY.",
            "The corridor narrows to a single port. Something has scorched the frame around it.",
        ),
    ),
    RoomTemplate(
        "core",
        "Process Chamber",
        (
            "A vaulted chamber where orphaned processes drift, waiting for a parent that will never return.",
            "Thread spools spin overhead. The scheduler's voice counts down timeslices in a whisper.",
            "The chamber pulses with the rhythm of a thousand context switches.",
        ),
    ),
    RoomTemplate(
        "ruin",
        "Memory Leak",
        (
            "The floor is slick with unreleased memory. It pools in the corners and never drains.",
            "Allocations swell from the walls like fungus, each one forgotten by whatever made it.",
            "Every step sinks a little deeper. The heap is growing and nobody is collecting.",
        ),
    ),
    RoomTemplate(
        "ruin",
        "Null Sector",
        (
            "A blank expanse where the address space simply stops. Your footsteps make no echo.",
            "Zeroed memory in every direction. Dereferencing anything here would be a mistake.",
            "The lattice frays into raw noise at the edges of this sector.",
        ),
    ),
)

ENEMY_TEMPLATES: Tuple[EnemyTemplate, ...] = (
    EnemyTemplate("Glitch Sprite", 12, 4, 0, 10, "A flickering knot of bad pixels that bites when it renders."),
    EnemyTemplate("Packet Wraith", 18, 6, 1, 18, "A ghost of dropped traffic, still trying to deliver itself."),
    EnemyTemplate("Rogue Daemon", 25, 7, 2, 25, "A background process that stopped answering to anyone."),
    EnemyTemplate("Corrupted Crawler", 30, 9, 2, 30, "A web crawler gone feral, indexing everything with its teeth."),
    EnemyTemplate("Firewall Sentinel", 38, 8, 4, 38, "An armoured rule engine. It does not negotiate."),
    EnemyTemplate("Null Pointer", 45, 10, 3, 45, "A hole in the world shaped like a reference to nothing."),
    EnemyTemplate("Kernel Panic", 58, 12, 5, 60, "A shrieking storm of stack traces and halted cores."),
    EnemyTemplate("The Overseer Process", 70, 14, 6, 90, "PID 1 of the lattice, vast and patient and awake."),
)

NPC_TEMPLATES: Tuple[NpcTemplate, ...] = (
    NpcTemplate(
        "The Archivist",
        "a dusty librarian process obsessed with deleted files, speaks in careful footnotes",
        (
            "Everything deleted is merely unindexed. Remember that down below.",
            "The deeper floors were archived in a hurry. Mind the gaps.",
            "I have catalogued you now. Do try not to be deleted.",
        ),
    ),
    NpcTemplate(
        "Echo",
        "a fragment of a former user who repeats half-remembered advice, wistful and scattered",
        (
            "...patch kits... always carry patch kits...",
            "...the crawlers... they hit harder than they look...",
            "...descend... I never did... you should...",
        ),
    ),
    NpcTemplate(
        "Sysop Ghost",
        "the sardonic remnant of the board's sysop, terse, irreverent, types in lowercase",
        (
            "no refunds on lost experience. read the fine manifold.",
            "the exit node is always the last one. you're welcome.",
            "still better than dial-up. barely.",
        ),
    ),
    NpcTemplate(
        "Merchant.exe",
        "a cheerful vending subroutine that has nothing left to sell, relentlessly upbeat",
        (
            "Welcome, valued user! Inventory: empty! Optimism: full!",
            "Weapons stack, friend. Only your best one counts, though!",
            "Come back soon! I will still be out of stock!",
        ),
    ),
)

ITEM_DEFS: Tuple[ItemDef, ...] = (
    ItemDef("patch_kit", "Patch Kit", CONSUMABLE, 20, COMMON, 0.15, EFFECT_HEAL),
    ItemDef("stim_pack", "Stim Pack", CONSUMABLE, 40, UNCOMMON, 0.08, EFFECT_HEAL),
    ItemDef("firewall_patch", "Firewall Patch", CONSUMABLE, 30, UNCOMMON, 0.06, EFFECT_SHIELD),
    ItemDef("data_shard", "Data Shard", CONSUMABLE, 50, UNCOMMON, 0.06, EFFECT_XP),
    ItemDef("logic_blade", "Logic Blade", WEAPON, 3, COMMON, 0.07),
    ItemDef("recursion_whip", "Recursion Whip", WEAPON, 6, UNCOMMON, 0.04),
    ItemDef("zero_day", "Zero-Day Exploit", WEAPON, 10, RARE, 0.02),
    ItemDef("root_key", "Root Key", KEY, 0, RARE, 0.02),
    ItemDef("encrypted_cache", "Encrypted Cache", TREASURE, 0, UNCOMMON, 0.05),
    ItemDef("golden_bit", "Golden Bit", TREASURE, 0, RARE, 0.02),
)

ITEMS: Mapping[str, ItemDef] = MappingProxyType({item.id: item for item in ITEM_DEFS})

# Guaranteed starter consumable placed in every entrance room
ENTRANCE_ITEM_ID = "patch_kit"

ENTRANCE_DESCRIPTION = (
    "You materialize at the lattice's entry node. A cursor blinks in the void beside you, "
    "patient and green. Somewhere deeper, processes are waiting."
)
EXIT_DESCRIPTION_DESCENT = (
    "A spiralling data stream plunges downward through the floor of this node. "
    'The next layer of the lattice lies below. Type "descend" to go deeper.'
)
EXIT_DESCRIPTION_FINAL = (
    "The stream ends here in a ring of white light: the core of the lattice. "
    'Nothing lies deeper. Type "descend" to breach it.'
)


def item(item_id: str) -> ItemDef | None:
    return ITEMS.get(item_id)


def item_name(item_id: str) -> str:
    found = ITEMS.get(item_id)
    return found.name if found else item_id


def npc_template(name: str) -> NpcTemplate | None:
    for tpl in NPC_TEMPLATES:
        if tpl.name == name:
            return tpl
    return None


__all__ = [
    "CONSUMABLE",
    "WEAPON",
    "KEY",
    "TREASURE",
    "COMMON",
    "UNCOMMON",
    "RARE",
    "EFFECT_HEAL",
    "EFFECT_SHIELD",
    "EFFECT_XP",
    "RoomTemplate",
    "EnemyTemplate",
    "NpcTemplate",
    "ItemDef",
    "ROOM_TEMPLATES",
    "ENEMY_TEMPLATES",
    "NPC_TEMPLATES",
    "ITEM_DEFS",
    "ITEMS",
    "ENTRANCE_ITEM_ID",
    "item",
    "item_name",
    "npc_template",
]
