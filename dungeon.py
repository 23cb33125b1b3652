# dungeon.py
# Room/deck resolution engine for the dungeon card crawl. No pygame imports here
# so the engine and its tests stay headless.

from __future__ import annotations
import os
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

# ---------- Tunables (env overrides) ----------
MAX_HEALTH = 20
ROOM_SIZE = 4
PLAYS_PER_ROOM = ROOM_SIZE - 1  # the last slot is the carry-over
DEFAULT_LOG_LIMIT = int(os.getenv("DUNGEON_LOG_LIMIT", "80"))


def env_seed() -> Optional[int]:
    raw = os.getenv("DUNGEON_SEED")
    return int(raw) if raw not in (None, "") else None


# -------------------------------------------------------------
# Core model
# -------------------------------------------------------------

SUITS = ("spades", "clubs", "diamonds", "hearts")
PIPS = {"spades": "♠", "clubs": "♣", "diamonds": "♦", "hearts": "♥"}
RANKS: List[Tuple[str, int]] = [
    ("2", 2), ("3", 3), ("4", 4), ("5", 5), ("6", 6), ("7", 7), ("8", 8), ("9", 9), ("10", 10),
    ("J", 11), ("Q", 12), ("K", 13), ("A", 14)
]

MONSTER = "monster"
WEAPON = "weapon"
POTION = "potion"

AWAITING_INTERACTION = "awaiting_interaction"
ROOM_CLEARED = "room_cleared"
GAME_OVER = "game_over"

LOG_CATEGORIES = ("info", "damage", "heal", "warning")


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str
    value: int

    @property
    def kind(self) -> str:
        if self.suit in ("spades", "clubs"):
            return MONSTER
        return WEAPON if self.suit == "diamonds" else POTION

    @property
    def label(self) -> str:
        return f"{self.rank}{PIPS[self.suit]}"


@dataclass
class RoomSlot:
    card: Card
    resolved: bool = False


@dataclass
class Weapon:
    """An equipped diamond. ``value`` is its current power and wears down."""
    card: Card
    value: int


@dataclass(frozen=True)
class LogEntry:
    text: str
    category: str = "info"


@dataclass(frozen=True)
class SlotView:
    suit: str
    rank: str
    value: int
    resolved: bool


@dataclass(frozen=True)
class WeaponView:
    suit: str
    rank: str
    value: int


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the engine handed to renderers after every mutation."""
    health: int
    score: int
    deck_count: int
    room: Tuple[SlotView, ...]
    equipped_weapon: Optional[WeaponView]
    resolved_count: int
    flee_available: bool
    room_cleared_can_draw: bool
    is_game_over: bool
    winner: Optional[bool]
    final_score: Optional[int]
    phase: str
    potion_used: bool = False
    graveyard: Tuple[str, ...] = ()
    log: Tuple[LogEntry, ...] = ()
    max_health: int = MAX_HEALTH

    def to_dict(self) -> Dict[str, object]:
        weapon = None
        if self.equipped_weapon is not None:
            w = self.equipped_weapon
            weapon = {"suit": w.suit, "rank": w.rank, "value": w.value}
        return {
            "health": self.health,
            "maxHealth": self.max_health,
            "score": self.score,
            "deckCount": self.deck_count,
            "room": [
                {"suit": s.suit, "rank": s.rank, "value": s.value, "resolved": s.resolved}
                for s in self.room
            ],
            "equippedWeapon": weapon,
            "resolvedCountThisRoom": self.resolved_count,
            "fleeAvailable": self.flee_available,
            "roomClearedCanDraw": self.room_cleared_can_draw,
            "isGameOver": self.is_game_over,
            "winner": self.winner,
            "finalScore": self.final_score,
            "phase": self.phase,
            "potionUsedThisRoom": self.potion_used,
            "graveyard": list(self.graveyard),
            "log": [{"text": e.text, "category": e.category} for e in self.log],
        }


# -------------------------------------------------------------
# Deck build and utils
# -------------------------------------------------------------

def build_deck() -> List[Card]:
    deck: List[Card] = []
    for suit in SUITS:
        for rank, val in RANKS:
            is_red = suit in ("hearts", "diamonds")
            if is_red and val > 10:
                continue
            deck.append(Card(suit=suit, rank=rank, value=val))
    return deck  # 44 cards


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    d = deck[:]
    (rng or random).shuffle(d)
    return d


def append_log(log: List[LogEntry], text: str, category: str = "info",
               limit: int = DEFAULT_LOG_LIMIT) -> None:
    if category not in LOG_CATEGORIES:
        raise ValueError(f"unknown log category {category!r}")
    log.insert(0, LogEntry(text, category))
    del log[limit:]


def compute_final_score(score: int, health: int, won: bool) -> int:
    # Remaining health only pays out on a win.
    return score + health * 100 if won else score


# -------------------------------------------------------------
# Engine
# -------------------------------------------------------------

SnapshotListener = Callable[[Snapshot], None]
VictoryListener = Callable[[int], None]


class DungeonEngine:
    """One game of the dungeon. Drive it with ``start_game``, ``draw_room``,
    ``flee_room`` and ``interact``; read it through ``snapshot`` or by
    subscribing a listener. Rule violations are soft: the call returns False
    and a warning is logged. A slot index outside the room raises IndexError.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None,
                 log_limit: int = DEFAULT_LOG_LIMIT):
        if rng is None:
            rng = random.Random(seed if seed is not None else env_seed())
        self.rng = rng
        self.log_limit = log_limit
        self.deck: List[Card] = []
        self.room: List[RoomSlot] = []
        self.weapon: Optional[Weapon] = None
        self.graveyard: List[Card] = []
        self.log: List[LogEntry] = []
        self.health = MAX_HEALTH
        self.score = 0
        self.potion_used = False
        self.flee_available = True
        self.resolved_count = 0
        self.is_game_over = False
        self.winner: Optional[bool] = None
        self._listeners: List[SnapshotListener] = []
        self._victory_listeners: List[VictoryListener] = []

    # ---- collaborators ----
    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_victory(self, listener: VictoryListener) -> None:
        self._victory_listeners.append(listener)

    def _emit(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    def _log(self, text: str, category: str = "info") -> None:
        append_log(self.log, text, category, self.log_limit)

    # ---- derived state ----
    @property
    def room_cleared_can_draw(self) -> bool:
        if self.is_game_over or not self.deck:
            return False
        return self.resolved_count >= PLAYS_PER_ROOM or not self.room

    @property
    def phase(self) -> str:
        if self.is_game_over:
            return GAME_OVER
        if self.resolved_count >= PLAYS_PER_ROOM and self.deck:
            return ROOM_CLEARED
        return AWAITING_INTERACTION

    @property
    def final_score(self) -> int:
        return compute_final_score(self.score, self.health, self.winner is True)

    def snapshot(self) -> Snapshot:
        weapon = None
        if self.weapon is not None:
            weapon = WeaponView(self.weapon.card.suit, self.weapon.card.rank, self.weapon.value)
        return Snapshot(
            health=self.health,
            score=self.score,
            deck_count=len(self.deck),
            room=tuple(SlotView(s.card.suit, s.card.rank, s.card.value, s.resolved) for s in self.room),
            equipped_weapon=weapon,
            resolved_count=self.resolved_count,
            flee_available=self.flee_available,
            room_cleared_can_draw=self.room_cleared_can_draw,
            is_game_over=self.is_game_over,
            winner=self.winner,
            final_score=self.final_score if self.is_game_over else None,
            phase=self.phase,
            potion_used=self.potion_used,
            graveyard=tuple(c.label for c in self.graveyard),
            log=tuple(self.log),
        )

    # ---- operations ----
    def start_game(self) -> Snapshot:
        self.deck = shuffle_deck(build_deck(), self.rng)
        self.room = []
        self.weapon = None
        self.graveyard = []
        self.log = []
        self.health = MAX_HEALTH
        self.score = 0
        self.potion_used = False
        self.flee_available = True
        self.resolved_count = 0
        self.is_game_over = False
        self.winner = None
        self._log(f"The dungeon gate creaks shut. {len(self.deck)} cards remain.")
        self.draw_room()
        return self.snapshot()

    def draw_room(self) -> bool:
        if self.is_game_over:
            return False
        if self.room and self.resolved_count < PLAYS_PER_ROOM:
            self._log("Resolve three cards before entering the next room.", "warning")
            self._emit()
            return False
        if self.room and not self.deck:
            self._log("The deck is empty. Finish the cards in front of you.", "warning")
            self._emit()
            return False

        carry = [s for s in self.room if not s.resolved]
        assert len(carry) <= 1, f"{len(carry)} unresolved cards at room transition"
        self.room = carry
        while len(self.room) < ROOM_SIZE and self.deck:
            self.room.append(RoomSlot(self.deck.pop(0)))
        self.resolved_count = 0
        self.potion_used = False
        self._emit()
        return True

    def flee_room(self) -> bool:
        if self.is_game_over:
            return False
        if not self.flee_available:
            self._log("You cannot flee again until you fight through a room.", "warning")
            self._emit()
            return False
        if self.resolved_count > 0 or not self.room:
            self._log("You can only flee before any card in the room is played.", "warning")
            self._emit()
            return False
        self.deck.extend(s.card for s in self.room)
        self.room = []
        self.flee_available = False
        self._log("You flee! You must fight your way through the next room before you can run again.",
                  "damage")
        self.draw_room()
        return True

    def interact(self, index: int) -> bool:
        if not 0 <= index < len(self.room):
            raise IndexError(f"room slot {index} out of range (room has {len(self.room)})")
        slot = self.room[index]
        if self.is_game_over:
            return False
        if slot.resolved:
            self._log(f"{slot.card.label} has already been dealt with.", "warning")
            self._emit()
            return False
        if self.resolved_count >= PLAYS_PER_ROOM and self.deck:
            self._log(f"{slot.card.label} waits for the next room. Draw to continue.", "warning")
            self._emit()
            return False

        card = slot.card
        if card.kind == MONSTER:
            self._resolve_combat(card)
        elif card.kind == WEAPON:
            self._resolve_weapon(card)
        else:
            self._resolve_potion(card)
        self._finish(slot)
        return True

    # ---- resolution ----
    def _resolve_combat(self, card: Card) -> None:
        damage = card.value
        if self.weapon is not None:
            w = self.weapon
            if w.value > card.value:
                damage = 0
                self._log(f"Slayed {card.label} with {w.card.label}.", "info")
                w.value = max(0, w.value - 1)
            else:
                damage = card.value - w.value
                self._log(f"Weapon blocked {w.value}, but {card.label} hit for {damage}.",
                          "damage" if damage else "info")
        else:
            self._log(f"Barehanded vs {card.label}. Took {damage} damage.", "damage")
        self.score += card.value * 10
        self._apply_damage(damage)
        self.graveyard.append(card)

    def _resolve_weapon(self, card: Card) -> None:
        self.weapon = Weapon(card=card, value=card.value)
        self._log(f"Found a {card.label}. Mighty!", "info")

    def _resolve_potion(self, card: Card) -> None:
        if self.potion_used:
            self._log("Potions are ineffective if taken too quickly.", "warning")
            return
        before = self.health
        self.health = min(MAX_HEALTH, self.health + card.value)
        self.potion_used = True
        self._log(f"Drank {card.label}. Healed {self.health - before}.", "heal")

    def _apply_damage(self, damage: int) -> None:
        self.health = max(0, self.health - damage)
        if self.health == 0:
            self._end_game(False)

    def _finish(self, slot: RoomSlot) -> None:
        slot.resolved = True
        # a last room dealt as the deck empties can take four plays; the count stays at 3
        self.resolved_count = min(PLAYS_PER_ROOM, self.resolved_count + 1)
        if self.resolved_count >= PLAYS_PER_ROOM:
            self.flee_available = True
        won = False
        if not self.is_game_over and not self.deck and all(s.resolved for s in self.room):
            self._end_game(True)
            won = True
        # renderers see the final state before any victory listener runs
        self._emit()
        if won:
            for listener in list(self._victory_listeners):
                listener(self.final_score)

    def _end_game(self, win: bool) -> None:
        if self.is_game_over:
            return
        self.is_game_over = True
        self.winner = win
        if win:
            self._log(f"You cleared the dungeon! Score: {self.final_score}", "heal")
        else:
            self._log(f"Your journey ends here. Score: {self.final_score}", "damage")
