import logging

from voyager.world import MOVEMENT_VERBS, merge_directions

logger = logging.getLogger(__name__)

PREPOSITIONS = ('on', 'with', 'to', 'in', 'at', 'from', 'into')
ARTICLES = ('the', 'a', 'an')

DEFAULT_HELP = {
    "go <direction>": "Move in a direction (north, south, etc.)",
    "look": "Describe your surroundings",
    "examine <thing>": "Look closely at something",
    "take <item>": "Pick up an item",
    "drop <item>": "Put down an item",
    "inventory": "List what you are carrying",
    "talk <person>": "Talk to a character",
    "use <item> [on <target>]": "Use an item, optionally on something",
    "help": "Show this help",
    "quit": "End the session"
}


class Intent:
    """One parsed line of player input."""
    def __init__(self, verb="", noun=None, preposition=None, target=None, raw="", tokens=None):
        self.verb = verb
        self.noun = noun
        self.preposition = preposition
        self.target = target
        self.raw = raw
        self.tokens = tokens or []

    @property
    def is_empty(self):
        return not self.verb

    @property
    def raw_verb(self):
        """The verb as typed, before synonym resolution."""
        return self.tokens[0] if self.tokens else self.verb

    def to_dict(self):
        return {
            "verb": self.verb,
            "noun": self.noun,
            "preposition": self.preposition,
            "target": self.target,
            "raw": self.raw
        }

    def __eq__(self, other):
        if not isinstance(other, Intent):
            return NotImplemented
        return self.to_dict() == other.to_dict() and self.tokens == other.tokens

    def __repr__(self):
        return f"Intent({self.to_dict()!r})"


class Listener:
    def __init__(self, commands=None):
        """
        The Listener is the COMMAND INTERPRETER.
        It turns raw text into an Intent using the campaign's synonym and
        direction tables. It never reads or touches the session.
        """
        commands = commands or {}
        self.verb_synonyms = {str(k).lower(): str(v).lower() for k, v in (commands.get('synonyms') or {}).items()}
        self.directions = merge_directions(commands.get('directions'))
        self.command_help = dict(commands.get('help') or DEFAULT_HELP)

    def parse(self, user_input):
        if not isinstance(user_input, str):
            return Intent(raw="")

        # A. NORMALIZE & TOKENIZE
        tokens = self.tokenize(self.normalize(user_input))

        # B. STRIP ARTICLES
        tokens = [t for t in tokens if t not in ARTICLES]
        if not tokens:
            return Intent(raw=user_input)

        # C. VERB
        verb = self.resolve_verb(tokens[0])

        # D. NOUN PHRASE
        noun, preposition, target = self.parse_noun_phrase(tokens[1:], verb)

        intent = Intent(verb, noun, preposition, target, raw=user_input, tokens=tokens)
        logger.debug("Parsed %r -> %r", user_input, intent)
        return intent

    def normalize(self, text):
        return " ".join(text.lower().split())

    def tokenize(self, text):
        return [t for t in text.split(" ") if t]

    def resolve_verb(self, verb):
        return self.verb_synonyms.get(verb, verb)

    def is_direction(self, word):
        word = word.lower()
        return word in self.directions or word in self.directions.values()

    def resolve_direction(self, word):
        word = word.lower()
        return self.directions.get(word, word)

    def parse_noun_phrase(self, tokens, verb):
        if not tokens:
            return None, None, None

        # Movement takes a single direction word; no preposition scan.
        if verb in MOVEMENT_VERBS:
            return self.resolve_direction(tokens[0]), None, None

        for index, token in enumerate(tokens):
            if token in PREPOSITIONS:
                noun_tokens = tokens[:index]
                target_tokens = tokens[index + 1:]
                return (
                    " ".join(noun_tokens) or None,
                    token,
                    " ".join(target_tokens) or None
                )

        return " ".join(tokens), None, None

    # ==========================================
    # HELP & SUGGESTIONS
    # ==========================================
    def get_help_text(self):
        text = "Available commands:\n\n"
        for command, description in self.command_help.items():
            text += f"  {command.upper()} - {description}\n"
        text += "\nDirection shortcuts:\n"
        text += "  n/s/e/w - north/south/east/west\n"
        text += "  ne/nw/se/sw - diagonals\n"
        text += "  u/d - up/down\n"
        return text

    def get_suggestions(self, context):
        """
        Commands worth trying in the current room.
        context: {"items": [names], "characters": [names], "exits": [directions]}
        """
        suggestions = ['look']
        for name in (context.get('items') or [])[:3]:
            suggestions.append(f"examine {name.lower()}")
        for name in context.get('characters') or []:
            suggestions.append(f"talk {name.lower()}")
        for direction in context.get('exits') or []:
            suggestions.append(f"go {direction}")
        suggestions.append('inventory')
        return suggestions
