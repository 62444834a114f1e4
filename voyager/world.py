"""
The World Model: static content tables for one campaign.

Everything here is built once by the loader and treated as read-only
reference data afterwards. Mutable progress lives in session.SessionState.
"""

MOVEMENT_VERBS = ('go', 'walk', 'move')

DEFAULT_DIRECTIONS = {
    'n': 'north', 's': 'south', 'e': 'east', 'w': 'west',
    'ne': 'northeast', 'nw': 'northwest', 'se': 'southeast', 'sw': 'southwest',
    'u': 'up', 'd': 'down'
}


def merge_directions(directions=None):
    """Built-in abbreviations overlaid with the campaign's own direction table."""
    table = dict(DEFAULT_DIRECTIONS)
    for word, canonical in (directions or {}).items():
        table[str(word).lower()] = str(canonical).lower()
    return table


# ==========================================
# EFFECTS
# ==========================================

class Effect:
    """
    The shared event record: {message?, set_flag?, give_item?}.
    Each present field is applied independently; a missing field is a no-op.
    """
    def __init__(self, data=None):
        data = data or {}
        self.message = data.get('message')
        self.set_flag = data.get('set_flag')
        self.give_item = data.get('give_item')

    def __repr__(self):
        return f"{self.__class__.__name__}(message={self.message!r}, set_flag={self.set_flag!r}, give_item={self.give_item!r})"


class UseAction(Effect):
    def __init__(self, data=None):
        super().__init__(data)
        data = data or {}
        self.target = data.get('target')
        self.consume = bool(data.get('consume', False))

    @property
    def is_default(self):
        # An action without a target fires on a bare "use <item>".
        return not self.target


class DialogueNode(Effect):
    def __init__(self, data=None):
        super().__init__(data)
        data = data or {}
        self.id = data.get('id')
        self.text = data.get('text', "")
        self.next_node = data.get('next_node')
        self.loop = data.get('loop')


class LockedExit:
    def __init__(self, data=None):
        data = data or {}
        self.requires_item = data.get('requires_item')
        self.requires_flag = data.get('requires_flag')
        self.message = data.get('message')


# ==========================================
# ENTITIES
# ==========================================

class Entity:
    def __init__(self, id, data):
        self.id = id
        self.name = data.get('name', 'unnamed')
        self.aliases = data.get('aliases') or []
        self.description = data.get('description', "")

    def match_name(self, name):
        """
        Entity resolution for one candidate. In priority order:
        exact name, exact id, substring of the name, exact alias.
        """
        name = name.lower()
        if self.name.lower() == name: return True
        if self.id.lower() == name: return True
        if name in self.name.lower(): return True
        for alias in self.aliases:
            if alias.lower() == name: return True
        return False

    def __repr__(self):
        return f"{self.__class__.__name__}({self.id!r})"


class Room(Entity):
    def __init__(self, id, data):
        super().__init__(id, data)
        self.exits = dict(data.get('exits') or {})
        self.locked_exits = {
            direction: LockedExit(info)
            for direction, info in (data.get('locked_exits') or {}).items()
        }
        self.items = list(data.get('items') or [])
        self.characters = list(data.get('characters') or [])
        self.features = {
            str(name).lower(): text
            for name, text in (data.get('features') or {}).items()
        }


class Item(Entity):
    def __init__(self, id, data):
        super().__init__(id, data)
        self.short_description = data.get('short_description')
        self.takeable = data.get('takeable', True) is not False
        self.visible = data.get('visible', True) is not False
        self.take_fail_message = data.get('take_fail_message')
        self.on_take = Effect(data['on_take']) if data.get('on_take') else None
        self.use_actions = [UseAction(a) for a in (data.get('use_actions') or [])]
        self.use_fail_message = data.get('use_fail_message')
        self.state_descriptions = dict(data.get('state_descriptions') or {})

    def get_description(self, flags):
        desc = self.description
        for flag, text in self.state_descriptions.items():
            if flags.get(flag):
                desc += "\n" + text
        return desc

    def find_default_action(self):
        for action in self.use_actions:
            if action.is_default:
                return action
        return None


class Character(Entity):
    def __init__(self, id, data):
        super().__init__(id, data)
        self.default_greeting = data.get('default_greeting')
        self.dialogue = [DialogueNode(n) for n in (data.get('dialogue') or [])]

    def find_node(self, node_id):
        for node in self.dialogue:
            if node.id == node_id:
                return node
        return None


# ==========================================
# WORLD
# ==========================================

class World:
    def __init__(self, rooms, items, characters, commands=None, manifest=None):
        """
        rooms/items/characters are lists of entities in content order.
        commands holds the synonym, direction and help tables; manifest the
        session configuration (title, starting room, objectives, ...).
        """
        self.rooms = {r.id: r for r in rooms}
        self.items = {i.id: i for i in items}
        self.characters = {c.id: c for c in characters}

        self.commands = commands or {}
        self.manifest = manifest or {}

    @property
    def title(self):
        return self.manifest.get('title', 'Untitled')

    @property
    def starting_room(self):
        return self.manifest.get('starting_room') or next(iter(self.rooms))

    @property
    def objectives(self):
        return self.manifest.get('objectives') or []

    def get_room(self, room_id):
        return self.rooms.get(room_id)

    def get_item(self, item_id):
        return self.items.get(item_id)

    def get_character(self, character_id):
        return self.characters.get(character_id)

    def matches_entity(self, entity_id, name):
        """True if entity_id names an item or character that `name` resolves to."""
        item = self.items.get(entity_id)
        if item and item.match_name(name):
            return True
        character = self.characters.get(entity_id)
        if character and character.match_name(name):
            return True
        return False
