"""
SessionState is the "Save File" in memory: every mutable fact about one
player's progress. Only the Director writes to it.
"""

CARRIED = "inventory"
REMOVED = "nowhere"


class SessionState:
    def __init__(self, starting_room):
        self.current_room = starting_room
        self.inventory = []
        self.flags = {}
        self.visited_rooms = set()
        self.item_locations = {}
        self.dialogue_state = {}

        # Input history and its navigation cursor (-1 = not navigating)
        self.history = []
        self.history_index = -1
        self.temp_input = ""

    @classmethod
    def for_world(cls, world):
        """A fresh session at the world's starting room with items placed per the room tables."""
        state = cls(world.starting_room)
        state.initialize_item_locations(world.rooms.values(), world.items)
        return state

    # ==========================================
    # 1. LOCATION
    # ==========================================
    def set_current_room(self, room_id):
        self.current_room = room_id

    def mark_room_visited(self, room_id):
        self.visited_rooms.add(room_id)

    def has_visited_room(self, room_id):
        return room_id in self.visited_rooms

    # ==========================================
    # 2. INVENTORY & ITEM LOCATIONS
    # ==========================================
    def has_item(self, item_id):
        return item_id in self.inventory

    def add_item(self, item_id):
        # Membership is unique; adding a carried item is a no-op.
        if item_id not in self.inventory:
            self.inventory.append(item_id)
            self.item_locations[item_id] = CARRIED

    def remove_item(self, item_id):
        if item_id in self.inventory:
            self.inventory.remove(item_id)
            return True
        return False

    def initialize_item_locations(self, rooms, item_ids=()):
        for room in rooms:
            for item_id in room.items:
                self.item_locations[item_id] = room.id
        # Items no room lists start off-stage until something grants them
        for item_id in item_ids:
            self.item_locations.setdefault(item_id, REMOVED)

    def get_item_location(self, item_id):
        return self.item_locations.get(item_id)

    def set_item_location(self, item_id, location):
        self.item_locations[item_id] = location

    def get_items_in_room(self, room_id):
        return [item_id for item_id, location in self.item_locations.items() if location == room_id]

    # ==========================================
    # 3. FLAGS
    # ==========================================
    def get_flag(self, name):
        return self.flags.get(name)

    def set_flag(self, name, value=True):
        self.flags[name] = value

    def has_flag(self, name):
        return bool(self.flags.get(name))

    # ==========================================
    # 4. DIALOGUE POINTERS
    # ==========================================
    def get_dialogue_state(self, character_id):
        return self.dialogue_state.get(character_id)

    def set_dialogue_state(self, character_id, node_id):
        self.dialogue_state[character_id] = node_id

    # ==========================================
    # 5. INPUT HISTORY
    # ==========================================
    def add_to_history(self, command):
        if not command or not command.strip():
            return
        # Consecutive duplicates are stored once
        if not self.history or self.history[-1] != command:
            self.history.append(command)
        self.history_index = -1
        self.temp_input = ""

    def navigate_history(self, direction):
        """
        Step through the history buffer: -1 goes back, +1 goes forward.
        Walking forward past the newest entry returns the stashed input.
        """
        if not self.history:
            return ""

        if self.history_index == -1 and direction == -1:
            self.history_index = len(self.history)

        new_index = self.history_index + direction
        if new_index < 0:
            self.history_index = 0
            return self.history[0]
        if new_index >= len(self.history):
            self.history_index = -1
            return self.temp_input

        self.history_index = new_index
        return self.history[self.history_index]

    # ==========================================
    # 6. SERIALIZATION
    # ==========================================
    def to_state(self):
        """JSON-compatible snapshot. History is part of the UI, not the save."""
        return {
            'current_room': self.current_room,
            'inventory': self.inventory[:],
            'flags': dict(self.flags),
            'visited_rooms': sorted(self.visited_rooms),
            'item_locations': dict(self.item_locations),
            'dialogue_state': dict(self.dialogue_state)
        }

    def load_state(self, state):
        self.current_room = state['current_room']
        self.inventory = list(state.get('inventory', []))
        self.flags = dict(state.get('flags', {}))
        self.visited_rooms = set(state.get('visited_rooms', []))
        self.item_locations = dict(state.get('item_locations', {}))
        self.dialogue_state = dict(state.get('dialogue_state', {}))

    @classmethod
    def from_state(cls, state):
        session = cls(state['current_room'])
        session.load_state(state)
        return session
