"""
Campaign loading.

A campaign is a directory of YAML files:

    manifest.yaml   title, starting_room, intro_text, victory_text, objectives
    scenes.yaml     list of rooms
    assets.yaml     {items: [...], characters: [...]}
    commands.yaml   {synonyms: {...}, directions: {...}, help: {...}}

load_campaign() reads them into one campaign_db dict; build_world() validates
that dict and turns it into a World. Any problem is a ContentError raised
before a session can start.
"""
import logging
import os

import yaml

from voyager.world import Character, Item, Room, World

logger = logging.getLogger(__name__)

CAMPAIGN_FILES = {
    'manifest': "manifest.yaml",
    'scenes': "scenes.yaml",
    'assets': "assets.yaml",
    'commands': "commands.yaml"
}


class ContentError(Exception):
    """Malformed campaign content or a dangling reference between tables."""
    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []


def load_campaign(campaign_path):
    """
    Loads and merges all YAML files for the campaign at campaign_path.
    Raises FileNotFoundError for a missing file and yaml.YAMLError for a
    file that does not parse.
    """
    campaign_db = {}
    for key, filename in CAMPAIGN_FILES.items():
        path = os.path.join(campaign_path, filename)
        logger.debug("Loading %s", path)
        with open(path, "r", encoding="utf-8") as f:
            campaign_db[key] = yaml.safe_load(f)
    return campaign_db


def load_world(campaign_path):
    return build_world(load_campaign(campaign_path))


def build_world(campaign_db):
    manifest = campaign_db.get('manifest')
    scenes = campaign_db.get('scenes')
    assets = campaign_db.get('assets') or {}
    commands = campaign_db.get('commands')

    # A. SHAPE
    validate_manifest(manifest)
    validate_rooms(scenes)
    if not isinstance(assets, dict):
        raise ContentError("assets.yaml must be a mapping with 'items' and 'characters' lists")
    items = assets.get('items') or []
    characters = assets.get('characters') or []
    validate_items(items)
    validate_characters(characters)
    validate_commands(commands)

    # B. CROSS REFERENCES
    validate_references(manifest, scenes, items, characters)

    world = World(
        rooms=[Room(r['id'], r) for r in scenes],
        items=[Item(i['id'], i) for i in items],
        characters=[Character(c['id'], c) for c in characters],
        commands=commands,
        manifest=manifest
    )
    logger.info(
        "Loaded campaign %r: %d rooms, %d items, %d characters",
        world.title, len(world.rooms), len(world.items), len(world.characters)
    )
    return world


# ==========================================
# SHAPE VALIDATION
# ==========================================

def _require_string(entry, field, prefix):
    value = entry.get(field)
    if not value or not isinstance(value, str):
        raise ContentError(f"{prefix}: Missing or invalid '{field}' (must be a string)")


def _require_type(entry, field, kind, label, prefix):
    value = entry.get(field)
    if value is not None and not isinstance(value, kind):
        raise ContentError(f"{prefix}: '{field}' must be {label}")


def _validate_entries(entries, filename, kind_label):
    if not isinstance(entries, list):
        raise ContentError(f"{filename} must contain a list of {kind_label} objects")
    for index, entry in enumerate(entries):
        prefix = f"{kind_label.capitalize()} at index {index}"
        if not isinstance(entry, dict):
            raise ContentError(f"{prefix}: must be a mapping")
        _require_string(entry, 'id', prefix)
        prefix = f"{prefix} ({entry['id']})"
        _require_string(entry, 'name', prefix)
        _require_string(entry, 'description', prefix)
        _require_type(entry, 'aliases', list, "a list", prefix)
        for alias in entry.get('aliases') or []:
            if not isinstance(alias, str):
                raise ContentError(f"{prefix}: 'aliases' entries must be strings (got {alias!r})")
        yield entry, prefix


def validate_manifest(manifest):
    if not isinstance(manifest, dict):
        raise ContentError("manifest.yaml must be a mapping")
    _require_string(manifest, 'starting_room', "manifest.yaml")
    _require_string(manifest, 'title', "manifest.yaml")
    objectives = manifest.get('objectives')
    if objectives is None:
        return
    if not isinstance(objectives, list):
        raise ContentError("manifest.yaml: 'objectives' must be a list")
    for index, objective in enumerate(objectives):
        if not isinstance(objective, dict) or not objective.get('flag'):
            raise ContentError(f"manifest.yaml: objective at index {index} needs a 'flag'")


def validate_rooms(rooms):
    if isinstance(rooms, list) and not rooms:
        raise ContentError("scenes.yaml must contain at least one room")
    for room, prefix in _validate_entries(rooms, "scenes.yaml", "room"):
        _require_type(room, 'exits', dict, "a mapping", prefix)
        _require_type(room, 'locked_exits', dict, "a mapping", prefix)
        _require_type(room, 'features', dict, "a mapping", prefix)
        _require_type(room, 'items', list, "a list", prefix)
        _require_type(room, 'characters', list, "a list", prefix)
        for direction, lock in (room.get('locked_exits') or {}).items():
            if lock is not None and not isinstance(lock, dict):
                raise ContentError(f"{prefix}: locked exit '{direction}' must be a mapping")


def validate_items(items):
    for item, prefix in _validate_entries(items, "assets.yaml 'items'", "item"):
        _require_type(item, 'use_actions', list, "a list", prefix)
        _require_type(item, 'on_take', dict, "a mapping", prefix)
        _require_type(item, 'state_descriptions', dict, "a mapping", prefix)
        for index, action in enumerate(item.get('use_actions') or []):
            if not isinstance(action, dict):
                raise ContentError(f"{prefix}: use action at index {index} must be a mapping")
            target = action.get('target')
            if target is not None and not isinstance(target, str):
                raise ContentError(f"{prefix}: use action at index {index} 'target' must be a string (got {target!r})")


def validate_characters(characters):
    for character, prefix in _validate_entries(characters, "assets.yaml 'characters'", "character"):
        _require_type(character, 'dialogue', list, "a list", prefix)
        for index, node in enumerate(character.get('dialogue') or []):
            if not isinstance(node, dict) or not node.get('id'):
                raise ContentError(f"{prefix}: dialogue node at index {index} needs an 'id'")


def validate_commands(commands):
    if not isinstance(commands, dict):
        raise ContentError("commands.yaml must be a mapping")
    if not isinstance(commands.get('synonyms'), dict):
        raise ContentError('commands.yaml must have a "synonyms" mapping')
    if not isinstance(commands.get('directions'), dict):
        raise ContentError('commands.yaml must have a "directions" mapping')


# ==========================================
# REFERENCE VALIDATION
# ==========================================

def validate_references(manifest, rooms, items, characters):
    """Collects every dangling reference and raises them together."""
    room_ids = {r['id'] for r in rooms}
    item_ids = {i['id'] for i in items}
    character_ids = {c['id'] for c in characters}
    errors = []

    if manifest['starting_room'] not in room_ids:
        errors.append(f'Manifest: starting_room references unknown room "{manifest["starting_room"]}"')

    for room in rooms:
        for direction, target in (room.get('exits') or {}).items():
            if target not in room_ids:
                errors.append(f'Room "{room["id"]}": Exit "{direction}" references unknown room "{target}"')
        for direction, lock in (room.get('locked_exits') or {}).items():
            if direction not in (room.get('exits') or {}):
                errors.append(f'Room "{room["id"]}": Locked exit "{direction}" has no matching exit')
            required = (lock or {}).get('requires_item')
            if required and required not in item_ids:
                errors.append(f'Room "{room["id"]}": Locked exit "{direction}" requires unknown item "{required}"')
        for item_id in room.get('items') or []:
            if item_id not in item_ids:
                errors.append(f'Room "{room["id"]}": Contains unknown item "{item_id}"')
        for character_id in room.get('characters') or []:
            if character_id not in character_ids:
                errors.append(f'Room "{room["id"]}": Contains unknown character "{character_id}"')

    for item in items:
        grants = [(item.get('on_take') or {}).get('give_item')]
        grants += [a.get('give_item') for a in item.get('use_actions') or []]
        for given in grants:
            if given and given not in item_ids:
                errors.append(f'Item "{item["id"]}": Gives unknown item "{given}"')

    for character in characters:
        node_ids = {n['id'] for n in character.get('dialogue') or []}
        for node in character.get('dialogue') or []:
            given = node.get('give_item')
            if given and given not in item_ids:
                errors.append(f'Character "{character["id"]}": Node "{node["id"]}" gives unknown item "{given}"')
            # Dangling pointers fall back to the first node at play time
            for pointer in ('next_node', 'loop'):
                if node.get(pointer) and node[pointer] not in node_ids:
                    logger.warning(
                        'Character "%s": node "%s" %s references unknown node "%s"',
                        character['id'], node['id'], pointer, node[pointer]
                    )

    if errors:
        raise ContentError(
            "Content validation failed:\n\n"
            + "\n".join(f"- {e}" for e in errors)
            + "\n\nPlease check your campaign files for typos or missing definitions.",
            errors
        )
