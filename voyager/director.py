import logging

from voyager.listener import Listener
from voyager.session import REMOVED

logger = logging.getLogger(__name__)

COMPLETED_FLAG = "game_completed"
DEFAULT_VICTORY_TEXT = "Congratulations! You have completed all objectives!"


class Director:
    def __init__(self, world, session, listener=None):
        """
        The Director is the STATE MACHINE.
        It validates an Intent against the World, mutates the SessionState and
        reports what happened as a list of narration events. It never prints.
        """
        self.world = world
        self.session = session
        self.listener = listener or Listener(world.commands)
        self.events = []

        self.handlers = {
            'look': self.handle_look, 'l': self.handle_look,
            'go': self.handle_go, 'walk': self.handle_go, 'move': self.handle_go,
            'examine': self.handle_examine, 'x': self.handle_examine, 'inspect': self.handle_examine,
            'take': self.handle_take, 'get': self.handle_take, 'grab': self.handle_take, 'pickup': self.handle_take,
            'drop': self.handle_drop, 'put': self.handle_drop, 'discard': self.handle_drop,
            'inventory': self.handle_inventory, 'i': self.handle_inventory, 'inv': self.handle_inventory,
            'talk': self.handle_talk, 'speak': self.handle_talk, 'chat': self.handle_talk,
            'use': self.handle_use, 'activate': self.handle_use,
            'help': self.handle_help, '?': self.handle_help,
            'quit': self.handle_quit, 'exit': self.handle_quit
        }

    # ==========================================================
    # 1. THE MASTER ROUTER
    # ==========================================================
    def execute(self, intent):
        """
        Runs one Intent to completion.
        Returns the LIST of events emitted, in narration order.
        """
        self.events = []

        if intent.is_empty:
            self._message('What would you like to do? Type "help" for available commands.', reason="empty_command")
        elif self.listener.is_direction(intent.raw_verb) or self.listener.is_direction(intent.verb):
            # A bare direction word is an implicit "go <direction>"
            direction = intent.raw_verb if self.listener.is_direction(intent.raw_verb) else intent.verb
            logger.debug("Direction shortcut: %s", direction)
            self.handle_go(intent, direction=direction)
        else:
            handler = self.handlers.get(intent.verb)
            if handler:
                logger.debug("Dispatching %r to %s", intent.verb, handler.__name__)
                handler(intent)
            else:
                self._error(
                    f'I don\'t understand "{intent.verb}". Type "help" to see available commands.',
                    reason="unknown_verb", details={"verb": intent.verb}
                )

        self.check_completion()
        return self.events

    # ==========================================================
    # 2. MOVEMENT
    # ==========================================================
    def handle_look(self, intent):
        if intent.noun or intent.target:
            # "look sword" / "look at sword"
            self.handle_examine(intent)
            return

        room = self.get_current_room()
        if not room:
            self._error("Error: Current room not found!", reason="missing_room")
            return

        self.session.mark_room_visited(room.id)
        self._room_description(room)

    def handle_go(self, intent, direction=None):
        direction = direction or intent.noun
        if not direction:
            self._error('Which direction? Try "go north" or just "north".', reason="missing_noun")
            return

        room = self.get_current_room()
        if not room:
            self._error("Error: Current room not found!", reason="missing_room")
            return

        direction = self.listener.resolve_direction(direction)

        # A. LOOKUP EXITS
        if direction not in room.exits:
            self._error(f"You can't go {direction} from here.", reason="no_exit", details={"direction": direction})
            if room.exits:
                self._message(f"Available exits: {', '.join(room.exits)}")
            return

        target_id = room.exits[direction]

        # B. CHECK LOCKS
        lock = room.locked_exits.get(direction)
        if lock and not self.check_unlock_condition(lock):
            self._warning(
                lock.message or f"The way {direction} is locked.",
                reason="locked", details={"direction": direction}
            )
            return

        target_room = self.world.get_room(target_id)
        if not target_room:
            self._error(f'Error: Target room "{target_id}" not found!', reason="missing_room")
            return

        # C. UPDATE STATE
        self.session.set_current_room(target_id)
        self.session.mark_room_visited(target_id)
        logger.debug("Moved %s: %s -> %s", direction, room.id, target_id)

        # D. DESCRIBE THE NEW ROOM
        self._message(f"You go {direction}.")
        self._room_description(target_room)

    def check_unlock_condition(self, lock):
        """Every specified requirement must hold; unspecified ones are ignored."""
        if lock.requires_item and not self.session.has_item(lock.requires_item):
            return False
        if lock.requires_flag and not self.session.has_flag(lock.requires_flag):
            return False
        return True

    # ==========================================================
    # 3. OBSERVATION
    # ==========================================================
    def handle_examine(self, intent):
        subject = intent.noun or intent.target
        if not subject:
            self._error('Examine what? Try "examine <something>".', reason="missing_noun")
            return

        name = subject.lower()

        item = self.find_item_in_inventory(name) or self.find_item_in_room(name)
        if item:
            self._message(item.get_description(self.session.flags))
            return

        character = self.find_character_in_room(name)
        if character:
            self._message(character.description)
            return

        room = self.get_current_room()
        if room and name in room.features:
            self._message(room.features[name])
            return

        self._error(f'You don\'t see any "{subject}" here.', reason="not_found")

    def handle_inventory(self, intent):
        if not self.session.inventory:
            self._message("You're not carrying anything.")
            return

        text = "You are carrying:"
        for item_id in self.session.inventory:
            item = self.world.get_item(item_id)
            if not item:
                continue
            text += f"\n  - {item.name}"
            if item.short_description:
                text += f" - {item.short_description}"
        self._message(text)

    # ==========================================================
    # 4. THE INVENTORY MANAGER
    # ==========================================================
    def handle_take(self, intent):
        if not intent.noun:
            self._error('Take what? Try "take <item>".', reason="missing_noun")
            return

        name = intent.noun.lower()
        item = self.find_item_in_room(name)
        if not item:
            carried = self.find_item_in_inventory(name)
            if carried:
                self._message(f"You already have the {carried.name}.", reason="already_carrying")
            else:
                self._error(f'You don\'t see any "{intent.noun}" here to take.', reason="not_found")
            return

        if not item.takeable:
            self._warning(item.take_fail_message or f"You can't take the {item.name}.", reason="not_takeable")
            return

        self.session.add_item(item.id)
        logger.debug("Took %s", item.id)
        self._success(f"You pick up the {item.name}.")

        if item.on_take:
            self.apply_effect(item.on_take)

    def handle_drop(self, intent):
        if not intent.noun:
            self._error('Drop what? Try "drop <item>".', reason="missing_noun")
            return

        item = self.find_item_in_inventory(intent.noun.lower())
        if not item:
            self._error(f'You\'re not carrying any "{intent.noun}".', reason="not_carrying")
            return

        self.session.remove_item(item.id)
        self.session.set_item_location(item.id, self.session.current_room)
        logger.debug("Dropped %s in %s", item.id, self.session.current_room)
        self._success(f"You drop the {item.name}.")

    # ==========================================================
    # 5. USE-ACTIONS
    # ==========================================================
    def handle_use(self, intent):
        if not intent.noun:
            self._error('Use what? Try "use <item>" or "use <item> on <target>".', reason="missing_noun")
            return

        name = intent.noun.lower()
        item = self.find_item_in_inventory(name)
        if not item:
            room_item = self.find_item_in_room(name)
            if room_item:
                self._warning(
                    f'You need to pick up the {room_item.name} first. Try "take {room_item.name.lower()}".',
                    reason="not_carrying"
                )
            else:
                self._error(f'You don\'t have any "{intent.noun}".', reason="not_carrying")
            return

        if not item.use_actions:
            self._message(item.use_fail_message or f"You're not sure how to use the {item.name}.", reason="no_use")
            return

        if not intent.target:
            action = item.find_default_action()
            if action:
                self.execute_use_action(item, action)
            else:
                self._error(
                    f'Use the {item.name} on what? Try "use {item.name.lower()} on <target>".',
                    reason="missing_target"
                )
            return

        target = intent.target.lower()
        for action in item.use_actions:
            if not action.target:
                continue
            if action.target.lower() == target or self.world.matches_entity(action.target, target):
                self.execute_use_action(item, action)
                return

        # Neutral outcome, not a failure
        self._message(
            f"Nothing happens when you try to use the {item.name} on {intent.target}.",
            reason="nothing_happens"
        )

    def execute_use_action(self, item, action):
        logger.debug("Use-action on %s (target=%s)", item.id, action.target)
        self.apply_effect(action, message_type="success", give_notice="You obtained: {item}", acting_item=item)

    def apply_effect(self, effect, message_type="message", give_notice=None, notice_type="message", acting_item=None):
        """
        Applies every present field of an Effect independently.
        Shared by on-take events, use-actions and dialogue nodes.
        """
        if effect.message:
            self._emit(message_type, effect.message)

        if effect.set_flag:
            self.session.set_flag(effect.set_flag, True)
            logger.debug("Flag set: %s", effect.set_flag)

        if effect.give_item:
            self.session.add_item(effect.give_item)
            given = self.world.get_item(effect.give_item)
            if given and give_notice:
                self._emit(notice_type, give_notice.format(item=given.name))

        if acting_item is not None and getattr(effect, 'consume', False):
            self.session.remove_item(acting_item.id)
            self.session.set_item_location(acting_item.id, REMOVED)
            logger.debug("Consumed %s", acting_item.id)

    # ==========================================================
    # 6. DIALOGUE
    # ==========================================================
    def handle_talk(self, intent):
        subject = intent.noun or intent.target
        room = self.get_current_room()

        if not subject:
            names = [c.name for c in self.get_characters_in_room(room)]
            if names:
                self._error(f"Talk to whom? You can see: {', '.join(names)}", reason="missing_noun")
            else:
                self._error("There's no one here to talk to.", reason="missing_noun")
            return

        character = self.find_character_in_room(subject.lower())
        if not character:
            self._error(f'You don\'t see "{subject}" here to talk to.', reason="not_found")
            return

        self.run_dialogue(character)

    def run_dialogue(self, character):
        if not character.dialogue:
            self._message(character.default_greeting or f"{character.name} doesn't seem to have anything to say.")
            return

        node_id = self.session.get_dialogue_state(character.id) or character.dialogue[0].id
        node = character.find_node(node_id)
        if node is None:
            # Stale pointer: restart the conversation from the top
            logger.debug("Dialogue pointer %r for %s is stale, restarting", node_id, character.id)
            node = character.dialogue[0]

        self._dialogue(character.name, node.text)
        self.apply_effect(
            node,
            give_notice=f"{character.name} gives you: {{item}}",
            notice_type="success"
        )

        if node.next_node:
            self.session.set_dialogue_state(character.id, node.next_node)
        elif node.loop:
            self.session.set_dialogue_state(character.id, node.loop)

    # ==========================================================
    # 7. READ-ONLY COMMANDS
    # ==========================================================
    def handle_help(self, intent):
        self._system(self.listener.get_help_text())

    def handle_quit(self, intent):
        self._message("Thanks for playing!", __end_session__=True)

    # ==========================================================
    # 8. COMPLETION
    # ==========================================================
    def check_completion(self):
        """Fires the victory narration once, the turn the last objective flag becomes true."""
        objectives = self.world.objectives
        if not objectives or self.session.has_flag(COMPLETED_FLAG):
            return

        if all(self.session.has_flag(o.get('flag')) for o in objectives):
            self.session.set_flag(COMPLETED_FLAG, True)
            logger.info("All %d objectives complete", len(objectives))
            self._success(self.world.manifest.get('victory_text') or DEFAULT_VICTORY_TEXT, reason="victory")

    # ==========================================================
    # 9. ENTITY RESOLUTION
    # ==========================================================
    def get_current_room(self):
        return self.world.get_room(self.session.current_room)

    def find_item_in_inventory(self, name):
        for item_id in self.session.inventory:
            item = self.world.get_item(item_id)
            if item and item.match_name(name):
                return item
        return None

    def find_item_in_room(self, name):
        for item_id in self.session.get_items_in_room(self.session.current_room):
            item = self.world.get_item(item_id)
            if item and item.match_name(name):
                return item
        return None

    def find_character_in_room(self, name):
        for character in self.get_characters_in_room(self.get_current_room()):
            if character.match_name(name):
                return character
        return None

    def get_visible_items_in_room(self, room_id):
        items = []
        for item_id in self.session.get_items_in_room(room_id):
            item = self.world.get_item(item_id)
            if item and item.visible:
                items.append(item)
        return items

    def get_characters_in_room(self, room):
        if not room:
            return []
        return [self.world.get_character(c) for c in room.characters if self.world.get_character(c)]

    # ==========================================================
    # 10. EVENT BUILDERS
    # ==========================================================
    def _emit(self, event_type, text, **extra):
        event = {"event_type": event_type, "text": text}
        event.update(extra)
        self.events.append(event)
        return event

    def _message(self, text, reason=None, **extra):
        if reason:
            extra['reason'] = reason
        return self._emit("message", text, **extra)

    def _success(self, text, reason=None):
        return self._emit("success", text, **({"reason": reason} if reason else {}))

    def _system(self, text):
        return self._emit("system", text)

    def _warning(self, text, reason, details=None):
        return self._emit("warning", text, status="FAILURE", reason=reason, details=details or {})

    def _error(self, text, reason, details=None):
        return self._emit("error", text, status="FAILURE", reason=reason, details=details or {})

    def _dialogue(self, speaker, text):
        return self._emit("dialogue", text, speaker=speaker)

    def _room_description(self, room):
        items = self.get_visible_items_in_room(room.id)
        characters = self.get_characters_in_room(room)
        return self._emit(
            "room_description",
            room.description,
            room_id=room.id,
            name=room.name,
            description=room.description,
            items=[i.name for i in items],
            characters=[c.name for c in characters],
            exits=list(room.exits)
        )
