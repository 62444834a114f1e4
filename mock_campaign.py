"""
MOCK DATA (The "Book") shared by the unit test suites.

make_campaign() returns a fresh campaign_db dict each call so tests may
mutate it freely before handing it to build_world().
"""
import copy

from voyager.director import Director
from voyager.listener import Listener
from voyager.loader import build_world
from voyager.session import SessionState

CAMPAIGN = {
    "manifest": {
        "title": "Mock Voyage",
        "starting_room": "bridge",
        "intro_text": "You wake on the bridge.",
        "objectives": [
            {"flag": "foundKey", "description": "Find the key"}
        ]
    },
    "scenes": [
        {
            "id": "bridge",
            "name": "Bridge",
            "description": "The command deck.",
            "exits": {"east": "corridor"},
            "items": ["sword", "console", "chip"],
            "characters": ["captain", "mute"],
            "features": {"viewscreen": "Stars drift past."}
        },
        {
            "id": "corridor",
            "name": "Corridor",
            "description": "A long corridor.",
            "exits": {"west": "bridge", "north": "vault", "south": "galley"},
            "locked_exits": {
                "north": {"requires_item": "keycard", "message": "The vault door wants a keycard."},
                "south": {"requires_flag": "galley_open"}
            },
            "items": ["keycard"]
        },
        {
            "id": "vault",
            "name": "Vault",
            "description": "Cold and quiet.",
            "exits": {"south": "corridor"},
            "items": ["chest_key"]
        },
        {
            "id": "galley",
            "name": "Galley",
            "description": "Smells of old coffee.",
            "exits": {"north": "corridor"}
        }
    ],
    "assets": {
        "items": [
            {
                "id": "sword",
                "name": "Sword",
                "aliases": ["blade"],
                "description": "A ceremonial sword.",
                "short_description": "sharp",
                "state_descriptions": {"polished": "It gleams.", "named": "It is called Dawn."}
            },
            {
                "id": "console",
                "name": "Navigation Console",
                "description": "Bolted to the deck.",
                "takeable": False,
                "take_fail_message": "The console is bolted down."
            },
            {
                "id": "chip",
                "name": "Data Chip",
                "description": "A hidden chip.",
                "visible": False
            },
            {
                "id": "keycard",
                "name": "Keycard",
                "aliases": ["card"],
                "description": "A blue keycard.",
                "on_take": {"message": "The keycard is warm.", "set_flag": "has_card"}
            },
            {
                "id": "chest_key",
                "name": "Chest Key",
                "description": "A tiny brass key.",
                "use_actions": [
                    {"target": "captain", "message": "The captain ignores the key."},
                    {"message": "You turn the key in the air.", "set_flag": "foundKey"}
                ]
            },
            {
                "id": "medkit",
                "name": "Medkit",
                "description": "A single-use medkit.",
                "use_actions": [
                    {"message": "You feel better.", "set_flag": "healed", "consume": True}
                ]
            },
            {
                "id": "wrench",
                "name": "Wrench",
                "description": "A heavy wrench.",
                "use_actions": [
                    {"target": "console", "message": "You tighten the console bolts.", "set_flag": "tightened",
                     "give_item": "bolt"}
                ]
            },
            {
                "id": "bolt",
                "name": "Spare Bolt",
                "description": "A leftover bolt."
            },
            {
                "id": "rock",
                "name": "Rock",
                "description": "Just a rock."
            }
        ],
        "characters": [
            {
                "id": "captain",
                "name": "Captain Reyes",
                "aliases": ["skipper"],
                "description": "A weathered officer.",
                "dialogue": [
                    {"id": "start", "text": "Welcome aboard.", "next_node": "orders"},
                    {"id": "orders", "text": "Find the key.", "set_flag": "has_orders",
                     "give_item": "medkit", "next_node": "ready"},
                    {"id": "ready", "text": "Ready when you are.", "loop": "ready"}
                ]
            },
            {
                "id": "mute",
                "name": "Silent Crewman",
                "description": "He says nothing.",
                "default_greeting": "The crewman nods."
            }
        ]
    },
    "commands": {
        "synonyms": {"get": "take", "grab": "take", "x": "examine", "walk": "go"},
        "directions": {"n": "north", "s": "south", "e": "east", "w": "west"}
    }
}


def make_campaign():
    return copy.deepcopy(CAMPAIGN)


def make_game(campaign_db=None):
    """Returns (world, session, listener, director) for a fresh session."""
    world = build_world(campaign_db or make_campaign())
    session = SessionState.for_world(world)
    listener = Listener(world.commands)
    director = Director(world, session, listener)
    return world, session, listener, director


def run(listener, director, text):
    return director.execute(listener.parse(text))


def texts(events, event_type=None):
    return [e['text'] for e in events if event_type is None or e['event_type'] == event_type]
