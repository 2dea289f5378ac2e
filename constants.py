"""
Module containing constants for the Destiny 2 Manifest Browser.
"""

import os

# Manifest storage configuration
MANIFEST_DB_PATH = os.getenv("MANIFEST_DB_PATH", "/tmp/manifest.content")
ITEM_TABLE = os.getenv("MANIFEST_ITEM_TABLE", "DestinyInventoryItemDefinition")
SOCKET_TYPE_TABLE = os.getenv("MANIFEST_SOCKET_TYPE_TABLE", "DestinySocketTypeDefinition")
PLUG_SET_TABLE = os.getenv("MANIFEST_PLUG_SET_TABLE", "DestinyPlugSetDefinition")
MANIFEST_KEY_COLUMN = "id"
MANIFEST_PAYLOAD_COLUMN = "json"

# Query defaults
WEAPON_ITEM_TYPE = 3  # DestinyItemType.Weapon
DEFAULT_SEARCH_LIMIT = int(os.getenv("MANIFEST_DEFAULT_LIMIT", "200"))
DEFAULT_SEARCH_OFFSET = 0
# itemType query values that switch the type filter off
ANY_ITEM_TYPE_VALUES = {"any", "all", "none", "null", "*"}

# Option resolution
RESOLUTION_CACHE_ENABLED = os.getenv("MANIFEST_RESOLUTION_CACHE", "true").lower() in {"1", "true", "yes"}

COLUMN_BARREL = "Barrel"
COLUMN_MAGAZINE = "Magazine"
COLUMN_TRAIT_1 = "Trait 1"
COLUMN_TRAIT_2 = "Trait 2"
COLUMN_ORIGIN = "Origin"
TRAIT_COLUMNS = (COLUMN_TRAIT_1, COLUMN_TRAIT_2)

# Output order of resolved option columns
COLUMN_ORDER = (COLUMN_BARREL, COLUMN_MAGAZINE, COLUMN_TRAIT_1, COLUMN_TRAIT_2, COLUMN_ORIGIN)

# Socket category hashes recognised as weapon option columns.
# Placeholders: the live manifest groups barrel, magazine, trait and origin
# sockets under one category (4241085061, Weapon Perks), while 3956125808 is
# Intrinsic Traits and 2685412949 is Weapon Mods. Check against the dataset in
# use and override through the environment.
SOCKET_CATEGORY_BARREL = int(os.getenv("SOCKET_CATEGORY_BARREL_HASH", "3956125808"))
SOCKET_CATEGORY_MAGAZINE = int(os.getenv("SOCKET_CATEGORY_MAGAZINE_HASH", "2685412949"))
SOCKET_CATEGORY_TRAIT = int(os.getenv("SOCKET_CATEGORY_TRAIT_HASH", "4241085061"))
SOCKET_CATEGORY_ORIGIN = int(os.getenv("SOCKET_CATEGORY_ORIGIN_HASH", "3993098925"))

# Maps socket category hash -> column group ("Trait" is split into Trait 1 / Trait 2)
SOCKET_CATEGORY_COLUMNS = {
    SOCKET_CATEGORY_BARREL: COLUMN_BARREL,
    SOCKET_CATEGORY_MAGAZINE: COLUMN_MAGAZINE,
    SOCKET_CATEGORY_TRAIT: "Trait",
    SOCKET_CATEGORY_ORIGIN: COLUMN_ORIGIN,
}

# Candidate plug sources tried in order; the first source yielding any hashes wins
PLUG_SOURCE_RANDOMIZED_PLUG_SET = "randomizedPlugSet"
PLUG_SOURCE_REUSABLE_PLUG_SET = "reusablePlugSet"
PLUG_SOURCE_REUSABLE_PLUG_ITEMS = "reusablePlugItems"
PLUG_SOURCE_SINGLE_INITIAL_ITEM = "singleInitialItem"
PLUG_SOURCE_ORDER = (
    PLUG_SOURCE_RANDOMIZED_PLUG_SET,
    PLUG_SOURCE_REUSABLE_PLUG_SET,
    PLUG_SOURCE_REUSABLE_PLUG_ITEMS,
    PLUG_SOURCE_SINGLE_INITIAL_ITEM,
)

# Cosmetic / meta plugs that are never surfaced as weapon options
EXCLUDED_PLUG_CATEGORY_TERMS = ("memento", "ornament", "tracker", "masterwork", "mod", "extractor")
EXCLUDED_PLUG_NAME_TERMS = ("deepsight",)
EXCLUDED_ITEM_TYPE_NAME_TERMS = ("shader",)
