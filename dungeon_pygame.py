# dungeon_pygame.py
# Pygame front end for the dungeon engine, with keyboard shortcuts.
#
# Install: pip install -e .
# Run game: python dungeon_pygame.py
# Run tests: RUN_TESTS=1 python dungeon_pygame.py

from __future__ import annotations
import os
import sys
from typing import List, Optional

from dungeon import PIPS, DungeonEngine, Snapshot
from highscores import HighScores

APP_DIR = os.path.dirname(os.path.abspath(__file__))

# -------------------------------------------------------------
# Presentation helpers — plain functions over snapshots, no pygame
# -------------------------------------------------------------

CARD_TYPES = {"spades": "Monster", "clubs": "Monster", "diamonds": "Steel", "hearts": "Ichor"}


def predict_outcome(snap: Snapshot, idx: int) -> str:
    """Describe what playing room slot ``idx`` would do, for hover tooltips."""
    slot = snap.room[idx]
    if snap.is_game_over:
        return ""
    if slot.resolved:
        return "Resolved"
    if snap.resolved_count >= 3 and snap.deck_count > 0:
        return "Carry-over: draw the next room first"
    if slot.suit == "hearts":
        if snap.potion_used:
            return "Ichor: no heal (already drank this room)"
        new_hp = min(snap.max_health, snap.health + slot.value)
        return f"Ichor: +{new_hp - snap.health} HP → {new_hp}"
    if slot.suit == "diamonds":
        w = snap.equipped_weapon
        if w is None:
            return f"Steel: equip power {slot.value}"
        return f"Steel: replace power {w.value} with {slot.value}"
    # monster
    w = snap.equipped_weapon
    if w is None:
        dmg = slot.value
        return f"Barehanded: -{dmg} HP, +{slot.value * 10} pts"
    if w.value > slot.value:
        return f"Clean kill: -0 HP, weapon {w.value} → {max(0, w.value - 1)}, +{slot.value * 10} pts"
    dmg = slot.value - w.value
    return f"Weapon blocks {w.value}: -{dmg} HP, +{slot.value * 10} pts"


SLOT_RESOLVED = "resolved"
SLOT_CARRY = "carry"
SLOT_PLAYABLE = "playable"
SLOT_IDLE = "idle"


def slot_state(snap: Snapshot, idx: int) -> str:
    slot = snap.room[idx]
    if slot.resolved:
        return SLOT_RESOLVED
    if snap.is_game_over:
        return SLOT_IDLE
    if snap.resolved_count >= 3 and snap.deck_count > 0:
        return SLOT_CARRY
    return SLOT_PLAYABLE


def tooltip_lines(snap: Snapshot, idx: int) -> List[str]:
    """Title line for the hovered card, then what playing it would do."""
    slot = snap.room[idx]
    lines = [f"{slot.rank}{PIPS[slot.suit]} {CARD_TYPES[slot.suit]}, slot {idx + 1}"]
    outcome = predict_outcome(snap, idx)
    if outcome:
        lines.append(outcome)
    state = slot_state(snap, idx)
    if state == SLOT_CARRY:
        lines.append("Stays in the room when you press [D]")
    elif state == SLOT_PLAYABLE and snap.deck_count == 0:
        lines.append("Deck is empty: every card here must be played")
    return lines


def flee_status(snap: Snapshot) -> str:
    if not snap.flee_available:
        return "Recharging"
    return "Available" if snap.resolved_count == 0 and snap.room else "Locked"


# -------------------------------------------------------------
# Pygame UI — isolated so tests don't import/initialize SDL
# -------------------------------------------------------------

def run_game(seed: Optional[int] = None, scores: Optional[HighScores] = None):
    import pygame  # local import so tests don't need it

    pygame.init()
    pygame.font.init()

    # Start bigger and allow resizing
    W, H = 1280, 800
    CARD_W, CARD_H = 110, 154

    COL_BG = (15, 23, 42)        # slate-900
    COL_PANEL = (30, 41, 59)     # slate-800
    COL_PANEL_SOFT = (23, 33, 52)
    COL_BORDER = (51, 65, 85)    # slate-700
    COL_TEXT = (226, 232, 240)   # slate-200
    COL_ACCENT = (16, 185, 129)  # emerald-500
    COL_SKY = (56, 189, 248)
    COL_RED = (239, 68, 68)
    COL_ROSE = (251, 113, 133)
    COL_MUTED = (115, 115, 115)
    COL_WHITE = (245, 245, 245)
    COL_DIM = (120, 120, 120)
    COL_BLACK = (31, 41, 55)
    COL_PLACEHOLDER = (71, 85, 105)  # slate-600
    COL_TOOLTIP_BG = (2, 6, 23)
    LOG_COLORS = {"info": COL_ACCENT, "damage": COL_RED, "heal": COL_ROSE, "warning": COL_MUTED}
    COL_AMBER = (251, 191, 36)
    STATE_COLORS = {SLOT_RESOLVED: COL_DIM, SLOT_CARRY: COL_AMBER, SLOT_PLAYABLE: COL_ACCENT, SLOT_IDLE: COL_BORDER}

    try:
        FONT = pygame.font.SysFont("dejavusansmono,consolas,menlo,monaco,monospace", 20)
        FONT_SM = pygame.font.SysFont("dejavusansmono,consolas,menlo,monaco,monospace", 16)
        FONT_LG = pygame.font.SysFont("dejavusansmono,consolas,menlo,monaco,monospace", 30)
    except Exception:
        FONT = pygame.font.Font(None, 20)
        FONT_SM = pygame.font.Font(None, 16)
        FONT_LG = pygame.font.Font(None, 30)

    def draw_text(surface, text, x, y, color=COL_TEXT, font=FONT):
        img = font.render(text, True, color)
        surface.blit(img, (x, y))

    def wrap_text(text: str, font, max_width: int) -> list[str]:
        words = text.split(' ')
        lines = []
        cur = ''
        for w in words:
            test = (cur + ' ' + w).strip()
            if font.size(test)[0] <= max_width:
                cur = test
            else:
                if cur:
                    lines.append(cur)
                cur = w
        if cur:
            lines.append(cur)
        return lines

    def layout():
        header = pygame.Rect(20, 20, W - 40, 120)
        ctrl = pygame.Rect(20, header.bottom + 12, W - 40, 64)
        log_w = max(340, int(W * 0.26))
        room = pygame.Rect(20, ctrl.bottom + 12, W - 40 - log_w - 12, H - (ctrl.bottom + 12) - 72)
        log = pygame.Rect(room.right + 12, room.top, log_w, room.height)
        return header, ctrl, room, log

    def slot_rect(slot_index: int, room_rect: pygame.Rect) -> pygame.Rect:
        slots = 4
        total_w = slots * CARD_W + (slots - 1) * 20
        x0 = room_rect.x + (room_rect.width - total_w) // 2
        y0 = room_rect.y + 56  # push below room title
        x = x0 + slot_index * (CARD_W + 20)
        return pygame.Rect(x, y0, CARD_W, CARD_H)

    def draw_badges(surface, header: pygame.Rect, snap: Snapshot):
        pad_y = header.y + 60
        x = header.x + 16
        right_limit = header.x + header.width - 260  # leave space for health block

        def badge(text, bg=COL_PANEL, fg=COL_TEXT):
            nonlocal x, pad_y
            pad = 6
            img = FONT.render(text, True, fg)
            rect = img.get_rect()
            bw = rect.width + pad * 2
            if x + bw > right_limit:
                x = header.x + 16
                pad_y += rect.height + 8
            r = pygame.Rect(x, pad_y, bw, rect.height + pad)
            pygame.draw.rect(surface, bg, r, border_radius=12)
            surface.blit(img, (x + pad, pad_y + 2))
            x += bw + 8

        w = snap.equipped_weapon
        badge(f"Weapon: {f'{w.rank}♦ power {w.value}' if w else 'hands are empty'}",
              bg=COL_SKY, fg=COL_BLACK)
        badge(f"Score: {snap.score}")
        badge(f"Flee: {flee_status(snap)}")
        badge(f"Deck: {snap.deck_count}")
        badge(f"{snap.resolved_count} / 3 Resolved")

        draw_text(surface, "Health", right_limit + 16, header.y + 12)
        hb = pygame.Rect(right_limit + 16, header.y + 40, 220, 18)
        pygame.draw.rect(surface, COL_BORDER, hb, border_radius=10)
        pct = max(0, min(1, snap.health / snap.max_health))
        fill = pygame.Rect(hb.x + 2, hb.y + 2, int((hb.width - 4) * pct), hb.height - 4)
        pygame.draw.rect(surface, COL_RED, fill, border_radius=8)
        draw_text(surface, f"{snap.health} / {snap.max_health}", hb.x, hb.y + 22, font=FONT_SM)

    def draw_tooltip(surface, snap: Snapshot, idx: int, pos: tuple[int, int]):
        state = slot_state(snap, idx)
        accent = STATE_COLORS[state]
        pad = 8
        title, *rest = tooltip_lines(snap, idx)
        lines: list[str] = [title]
        for part in rest:
            lines.extend(wrap_text(part, FONT_SM, 280))
        w = max(FONT_SM.size(line)[0] for line in lines) + pad * 2
        h = len(lines) * (FONT_SM.get_height() + 2) + pad * 2
        x, y = pos
        if x + w > W - 12:
            x = W - 12 - w
        if y + h > H - 12:
            y = H - 12 - h
        rect = pygame.Rect(x, y, w, h)
        pygame.draw.rect(surface, COL_TOOLTIP_BG, rect, border_radius=8)
        pygame.draw.rect(surface, accent, rect, width=2, border_radius=8)
        ty = y + pad
        for i, line in enumerate(lines):
            draw_text(surface, line, x + pad, ty, color=accent if i == 0 else COL_TEXT, font=FONT_SM)
            ty += FONT_SM.get_height() + 2

    screen = pygame.display.set_mode((W, H), pygame.RESIZABLE)
    pygame.display.set_caption("Dungeon – Pygame")
    clock = pygame.time.Clock()

    scores = scores or HighScores()
    engine = DungeonEngine(seed=seed)
    scores.attach(engine)

    # The renderer only ever reads the latest snapshot.
    latest: List[Snapshot] = [engine.snapshot()]

    def on_snapshot(s: Snapshot):
        latest[0] = s

    engine.subscribe(on_snapshot)
    engine.start_game()

    def play_slot(slot: int):
        if slot < len(latest[0].room):
            engine.interact(slot)

    running = True
    while running:
        has_focus = bool(pygame.key.get_focused())

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.VIDEORESIZE:
                W, H = max(900, event.w), max(650, event.h)
                screen = pygame.display.set_mode((W, H), pygame.RESIZABLE)
            elif event.type == pygame.KEYDOWN and has_focus:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_n:
                    engine.start_game()
                elif event.key == pygame.K_f:
                    engine.flee_room()
                elif event.key == pygame.K_d:
                    engine.draw_room()
                elif event.key in (pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_4):
                    play_slot({pygame.K_1: 0, pygame.K_2: 1, pygame.K_3: 2, pygame.K_4: 3}[event.key])
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                header, ctrl, room_rect, log_rect = layout()
                for slot in range(4):
                    if slot_rect(slot, room_rect).collidepoint(*event.pos):
                        play_slot(slot)
                        break

        snap = latest[0]
        header, ctrl, room_rect, log_rect = layout()
        screen.fill(COL_BG)

        pygame.draw.rect(screen, COL_PANEL, header, border_radius=16)
        pygame.draw.rect(screen, COL_BORDER, header, width=2, border_radius=16)
        draw_text(screen, "Dungeon", header.x + 16, header.y + 12, font=FONT_LG)
        draw_badges(screen, header, snap)

        pygame.draw.rect(screen, COL_PANEL, ctrl, border_radius=16)
        pygame.draw.rect(screen, COL_BORDER, ctrl, width=2, border_radius=16)
        draw_text(screen, "[1-4] Play Card   [D] Draw Room   [F] Flee   [N] New Game   [ESC] Quit",
                  ctrl.x + 16, ctrl.y + 18)
        if not has_focus:
            draw_text(screen, "Click window to focus for hotkeys", ctrl.x + 16, ctrl.y + 38,
                      color=(203, 213, 225), font=FONT_SM)
        elif snap.room_cleared_can_draw:
            draw_text(screen, "Room cleared. Press [D] to go deeper.", ctrl.x + 16, ctrl.y + 38,
                      color=COL_ACCENT, font=FONT_SM)

        pygame.draw.rect(screen, COL_PANEL_SOFT, room_rect, border_radius=16)
        pygame.draw.rect(screen, COL_BORDER, room_rect, width=2, border_radius=16)
        draw_text(screen, "Current Room", room_rect.x + 12, room_rect.y + 12)

        hovered: Optional[int] = None
        tip_pos = (0, 0)
        mx, my = pygame.mouse.get_pos()
        for slot in range(4):
            r = slot_rect(slot, room_rect)
            if slot >= len(snap.room):
                pygame.draw.rect(screen, COL_PANEL, r, border_radius=14)
                pygame.draw.rect(screen, COL_PLACEHOLDER, r, width=2, border_radius=14)
                continue
            c = snap.room[slot]
            is_red = c.suit in ("hearts", "diamonds")
            color = COL_RED if is_red else COL_BLACK
            if c.resolved:
                color = COL_DIM
            pygame.draw.rect(screen, COL_PANEL if c.resolved else COL_WHITE, r, border_radius=14)
            edge = COL_AMBER if slot_state(snap, slot) == SLOT_CARRY else (200, 200, 200)
            pygame.draw.rect(screen, edge, r, width=3 if edge == COL_AMBER else 2, border_radius=14)
            draw_text(screen, c.rank, r.x + 8, r.y + 8, color=color)
            draw_text(screen, PIPS[c.suit], r.x + 8, r.y + 32, color=color)
            big = FONT_LG.render(str(c.value), True, color)
            screen.blit(big, (r.centerx - big.get_width() // 2, r.centery - big.get_height() // 2))
            draw_text(screen, CARD_TYPES[c.suit], r.x + 8, r.bottom - 24, color=color, font=FONT_SM)

            idx_badge = pygame.Rect(r.x - 10, r.y - 18, 26, 18)
            pygame.draw.rect(screen, COL_ACCENT, idx_badge, border_radius=8)
            draw_text(screen, str(slot + 1), idx_badge.x + 8, idx_badge.y, color=COL_BLACK, font=FONT_SM)

            if r.collidepoint(mx, my):
                hovered = slot
                tip_pos = (r.right + 8, r.top + 8)

        # graveyard strip under the cards
        gy_y = slot_rect(0, room_rect).bottom + 24
        draw_text(screen, "Graveyard:", room_rect.x + 12, gy_y, font=FONT_SM)
        gx = room_rect.x + 120
        for label in snap.graveyard:
            if gx > room_rect.right - 40:
                gx = room_rect.x + 120
                gy_y += FONT_SM.get_height() + 4
            draw_text(screen, label, gx, gy_y, color=(203, 213, 225), font=FONT_SM)
            gx += FONT_SM.size(label)[0] + 8

        pygame.draw.rect(screen, COL_PANEL, log_rect, border_radius=16)
        pygame.draw.rect(screen, COL_BORDER, log_rect, width=2, border_radius=16)
        draw_text(screen, "Log", log_rect.x + 12, log_rect.y + 10)
        pad = 12
        y = log_rect.y + 34
        max_y = log_rect.bottom - 12
        max_w = log_rect.width - pad * 2
        for entry in snap.log:
            for line in wrap_text(entry.text, FONT_SM, max_w):
                if y + FONT_SM.get_height() > max_y:
                    break
                draw_text(screen, line, log_rect.x + pad, y, color=LOG_COLORS[entry.category], font=FONT_SM)
                y += FONT_SM.get_height() + 2
            if y + FONT_SM.get_height() > max_y:
                break

        res_rect = pygame.Rect(20, H - 48, W - 40, 36)
        pygame.draw.rect(screen, COL_PANEL, res_rect, border_radius=16)
        pygame.draw.rect(screen, COL_BORDER, res_rect, width=2, border_radius=16)
        best = "  ".join(str(e.score) for e in scores.entries()) or "-"
        if snap.is_game_over:
            title = "ASCENDED" if snap.winner else "EXTINGUISHED"
            draw_text(screen, f"{title}  |  Score: {snap.final_score}  |  Best: {best}  |  Press [N] for New Game",
                      res_rect.x + 16, res_rect.y + 8)
        else:
            draw_text(screen, f"Best: {best}", res_rect.x + 16, res_rect.y + 8)

        if hovered is not None:
            draw_tooltip(screen, snap, hovered, tip_pos)

        pygame.display.flip()
        clock.tick(60)

    pygame.quit()


def _run_tests():
    import unittest

    suite = unittest.defaultTestLoader.discover(APP_DIR, pattern="test_*.py")
    res = unittest.TextTestRunner(verbosity=2).run(suite)
    if not res.wasSuccessful():
        sys.exit(1)


# -------------------------------------------------------------
# Entrypoint
# -------------------------------------------------------------

def main():
    if os.environ.get("RUN_TESTS"):
        _run_tests()
    else:
        run_game()


if __name__ == "__main__":
    main()
