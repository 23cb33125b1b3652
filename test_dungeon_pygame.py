import unittest

from dungeon import Card, DungeonEngine, RoomSlot, Weapon
from dungeon_pygame import (SLOT_CARRY, SLOT_IDLE, SLOT_PLAYABLE, SLOT_RESOLVED, flee_status,
                            predict_outcome, slot_state, tooltip_lines)


def engine_with_room(*cards):
    eng = DungeonEngine(seed=0)
    eng.start_game()
    eng.room = [RoomSlot(c) for c in cards]
    eng.resolved_count = 0
    return eng


class TestPredictOutcome(unittest.TestCase):
    def test_monster_predictions_match_engine(self):
        eng = engine_with_room(Card("spades", "8", 8), Card("clubs", "3", 3), Card("spades", "Q", 12))
        eng.weapon = Weapon(Card("diamonds", "6", 6), 6)
        snap = eng.snapshot()
        self.assertEqual(predict_outcome(snap, 0), "Weapon blocks 6: -2 HP, +80 pts")
        self.assertIn("Clean kill", predict_outcome(snap, 1))
        self.assertIn("weapon 6 → 5", predict_outcome(snap, 1))
        eng.interact(0)
        self.assertEqual(eng.health, 18)
        eng.interact(1)
        self.assertEqual(eng.weapon.value, 5)

    def test_barehanded_and_steel(self):
        eng = engine_with_room(Card("clubs", "5", 5), Card("diamonds", "7", 7))
        snap = eng.snapshot()
        self.assertEqual(predict_outcome(snap, 0), "Barehanded: -5 HP, +50 pts")
        self.assertEqual(predict_outcome(snap, 1), "Steel: equip power 7")

    def test_potion_predictions(self):
        eng = engine_with_room(Card("hearts", "9", 9), Card("hearts", "4", 4))
        eng.health = 15
        self.assertEqual(predict_outcome(eng.snapshot(), 0), "Ichor: +5 HP → 20")
        eng.interact(0)
        snap = eng.snapshot()
        self.assertEqual(predict_outcome(snap, 0), "Resolved")
        self.assertIn("no heal", predict_outcome(snap, 1))

    def test_carry_over_slot(self):
        eng = engine_with_room(*(Card("hearts", str(v), v) for v in (2, 3, 4, 5)))
        for i in range(3):
            eng.interact(i)
        self.assertIn("Carry-over", predict_outcome(eng.snapshot(), 3))

    def test_flee_status(self):
        eng = engine_with_room(Card("hearts", "2", 2), Card("hearts", "3", 3))
        self.assertEqual(flee_status(eng.snapshot()), "Available")
        eng.interact(0)
        self.assertEqual(flee_status(eng.snapshot()), "Locked")
        eng.flee_available = False
        self.assertEqual(flee_status(eng.snapshot()), "Recharging")


class TestTooltip(unittest.TestCase):
    def test_carry_over_card(self):
        eng = engine_with_room(*(Card("hearts", str(v), v) for v in (2, 3, 4, 5)))
        for i in range(3):
            eng.interact(i)
        snap = eng.snapshot()
        self.assertEqual(slot_state(snap, 0), SLOT_RESOLVED)
        self.assertEqual(slot_state(snap, 3), SLOT_CARRY)
        lines = tooltip_lines(snap, 3)
        self.assertEqual(lines[0], "5♥ Ichor, slot 4")
        self.assertIn("Stays in the room", lines[-1])
        self.assertEqual(tooltip_lines(snap, 1), ["3♥ Ichor, slot 2", "Resolved"])

    def test_empty_deck_warns_every_card_must_play(self):
        eng = engine_with_room(Card("spades", "4", 4), Card("diamonds", "2", 2))
        eng.deck = []
        snap = eng.snapshot()
        self.assertEqual(slot_state(snap, 0), SLOT_PLAYABLE)
        self.assertEqual(tooltip_lines(snap, 0),
                         ["4♠ Monster, slot 1", "Barehanded: -4 HP, +40 pts",
                          "Deck is empty: every card here must be played"])

    def test_game_over_slots_go_idle(self):
        eng = engine_with_room(Card("spades", "A", 14), Card("clubs", "2", 2))
        eng.health = 1
        eng.interact(0)
        snap = eng.snapshot()
        self.assertEqual(slot_state(snap, 1), SLOT_IDLE)
        self.assertEqual(tooltip_lines(snap, 1), ["2♣ Monster, slot 2"])


if __name__ == "__main__":
    unittest.main()
