import os
import shutil
import tempfile
import unittest

import yaml

from mock_campaign import make_campaign
from voyager.loader import CAMPAIGN_FILES, ContentError, build_world, load_campaign, load_world

CAMPAIGN_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "campaigns", "stellar_voyager")


def find(entries, entry_id):
    return [e for e in entries if e['id'] == entry_id][0]


class TestBuildWorld(unittest.TestCase):
    def test_builds_world(self):
        world = build_world(make_campaign())
        self.assertEqual(world.title, "Mock Voyage")
        self.assertEqual(world.starting_room, "bridge")
        self.assertEqual(list(world.rooms), ["bridge", "corridor", "vault", "galley"])
        self.assertEqual(world.get_item("keycard").on_take.set_flag, "has_card")
        self.assertFalse(world.get_item("console").takeable)
        self.assertFalse(world.get_item("chip").visible)
        self.assertEqual(world.get_room("corridor").locked_exits["north"].requires_item, "keycard")
        self.assertEqual(world.get_character("captain").find_node("ready").loop, "ready")

    def test_missing_starting_room(self):
        campaign = make_campaign()
        del campaign['manifest']['starting_room']
        with self.assertRaises(ContentError) as ctx:
            build_world(campaign)
        self.assertIn("starting_room", str(ctx.exception))

    def test_room_shape_errors(self):
        campaign = make_campaign()
        campaign['scenes'][1]['name'] = 42
        with self.assertRaises(ContentError) as ctx:
            build_world(campaign)
        self.assertIn("Room at index 1 (corridor)", str(ctx.exception))
        self.assertIn("'name'", str(ctx.exception))

        campaign = make_campaign()
        campaign['scenes'] = []
        with self.assertRaises(ContentError):
            build_world(campaign)

        campaign = make_campaign()
        campaign['scenes'][0]['exits'] = ["east"]
        with self.assertRaises(ContentError):
            build_world(campaign)

    def test_use_action_must_be_mapping(self):
        campaign = make_campaign()
        find(campaign['assets']['items'], "medkit")['use_actions'] = ["heal"]
        with self.assertRaises(ContentError):
            build_world(campaign)

    def test_aliases_must_be_strings(self):
        campaign = make_campaign()
        # YAML reads a bare "on" as a boolean
        find(campaign['assets']['items'], "sword")['aliases'] = yaml.safe_load("[blade, on]")
        with self.assertRaises(ContentError) as ctx:
            build_world(campaign)
        self.assertIn("Item at index 0 (sword)", str(ctx.exception))
        self.assertIn("'aliases'", str(ctx.exception))

        campaign = make_campaign()
        find(campaign['assets']['characters'], "captain")['aliases'] = [7]
        with self.assertRaises(ContentError) as ctx:
            build_world(campaign)
        self.assertIn("Character at index 0 (captain)", str(ctx.exception))

    def test_use_action_target_must_be_string(self):
        campaign = make_campaign()
        find(campaign['assets']['items'], "wrench")['use_actions'][0]['target'] = yaml.safe_load("no")
        with self.assertRaises(ContentError) as ctx:
            build_world(campaign)
        self.assertIn("(wrench)", str(ctx.exception))
        self.assertIn("'target'", str(ctx.exception))

    def test_dialogue_nodes_need_ids(self):
        campaign = make_campaign()
        find(campaign['assets']['characters'], "captain")['dialogue'].append({"text": "Hm."})
        with self.assertRaises(ContentError):
            build_world(campaign)

    def test_commands_tables_required(self):
        campaign = make_campaign()
        del campaign['commands']['synonyms']
        with self.assertRaises(ContentError):
            build_world(campaign)

    def test_objectives_need_flags(self):
        campaign = make_campaign()
        campaign['manifest']['objectives'] = [{"description": "Win"}]
        with self.assertRaises(ContentError):
            build_world(campaign)


class TestReferenceValidation(unittest.TestCase):
    def test_all_dangling_references_reported_together(self):
        campaign = make_campaign()
        campaign['manifest']['starting_room'] = "lobby"
        campaign['scenes'][0]['exits']['west'] = "airlock"
        campaign['scenes'][0]['items'].append("phaser")
        campaign['scenes'][0]['characters'].append("ghost")
        campaign['scenes'][1]['locked_exits']['up'] = {"requires_item": "ladder"}
        find(campaign['assets']['items'], "wrench")['use_actions'][0]['give_item'] = "nut"
        find(campaign['assets']['items'], "keycard")['on_take']['give_item'] = "lanyard"
        find(campaign['assets']['characters'], "captain")['dialogue'][1]['give_item'] = "badge"

        with self.assertRaises(ContentError) as ctx:
            build_world(campaign)

        errors = ctx.exception.errors
        self.assertEqual(errors, [
            'Manifest: starting_room references unknown room "lobby"',
            'Room "bridge": Exit "west" references unknown room "airlock"',
            'Room "bridge": Contains unknown item "phaser"',
            'Room "bridge": Contains unknown character "ghost"',
            'Room "corridor": Locked exit "up" has no matching exit',
            'Room "corridor": Locked exit "up" requires unknown item "ladder"',
            'Item "keycard": Gives unknown item "lanyard"',
            'Item "wrench": Gives unknown item "nut"',
            'Character "captain": Node "orders" gives unknown item "badge"',
        ])
        self.assertTrue(str(ctx.exception).startswith("Content validation failed:"))

    def test_dangling_dialogue_pointer_only_warns(self):
        campaign = make_campaign()
        find(campaign['assets']['characters'], "captain")['dialogue'][0]['next_node'] = "nowhere"
        with self.assertLogs("voyager.loader", level="WARNING") as logs:
            world = build_world(campaign)
        self.assertIn("nowhere", logs.output[0])
        self.assertEqual(world.get_character("captain").dialogue[0].next_node, "nowhere")


class TestLoadCampaign(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def write_campaign(self, campaign):
        for key, filename in CAMPAIGN_FILES.items():
            with open(os.path.join(self.tmpdir, filename), "w", encoding="utf-8") as f:
                yaml.safe_dump(campaign[key], f)

    def test_round_trips_through_files(self):
        self.write_campaign(make_campaign())
        world = load_world(self.tmpdir)
        self.assertEqual(world.title, "Mock Voyage")
        self.assertEqual(len(world.items), 9)

    def test_missing_file(self):
        self.write_campaign(make_campaign())
        os.remove(os.path.join(self.tmpdir, "commands.yaml"))
        with self.assertRaises(FileNotFoundError):
            load_campaign(self.tmpdir)

    def test_malformed_yaml(self):
        self.write_campaign(make_campaign())
        with open(os.path.join(self.tmpdir, "scenes.yaml"), "w", encoding="utf-8") as f:
            f.write("- id: bridge\n  exits: {east: [corridor\n")
        with self.assertRaises(yaml.YAMLError):
            load_campaign(self.tmpdir)

    def test_bundled_campaign_loads(self):
        world = load_world(CAMPAIGN_PATH)
        self.assertEqual(world.title, "Stellar Voyager")
        self.assertEqual(world.starting_room, "bridge")
        self.assertEqual(len(world.rooms), 6)
        self.assertEqual([o['flag'] for o in world.objectives], ["power_restored", "beacon_launched"])


if __name__ == '__main__':
    unittest.main()
