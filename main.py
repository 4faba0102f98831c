from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Tuple

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

from config import (
    MAP_H,
    MAP_W,
    PANEL_H,
    SETTINGS_FILE,
    STATUS_MENU,
    VEHICLE_EN_ROUTE,
    VEHICLE_LOADING,
    VEHICLE_MAINTENANCE,
)
from game.entities import Location, Order, Vehicle, clamp, new_id
from game.settings import JsonSettingsStore, MemorySettingsStore
from game.simulation import LogisticsSim
from level_catalog import unlock_display_name


def run_headless(ticks: int, dt: float, seed: int = 7, settings_path: Path | None = None) -> LogisticsSim:
    settings = JsonSettingsStore(settings_path) if settings_path is not None else MemorySettingsStore()
    sim = LogisticsSim(seed=seed, settings=settings)
    sim.start()

    for _ in range(ticks):
        sim.tick(dt)
        if sim.game_over:
            break

    s = sim.summary()
    print(
        f"headless_done t={s['time']:.1f} status={s['status']} "
        f"orders[active={s['active_orders']},assigned={s['assigned_orders']},done={s['completed_orders']}] "
        f"kpi[sla={s['on_time_rate']:.3f},csat={s['satisfaction']:.3f},weather={s['weather']}]"
        f" progression[score={s['score']},level={s['level']},xp={s['experience']}]"
        f" economy[budget=${s['budget']:.2f},profit=${s['profit']:.2f}]"
    )
    return sim


class GameUI:
    def __init__(self, sim: LogisticsSim):
        if pygame is None:
            raise RuntimeError("pygame is required for graphical mode. Relaunch with --headless.")
        pygame.init()
        pygame.display.init()
        if not pygame.display.get_init():
            raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")
        try:
            self.screen = pygame.display.set_mode((MAP_W, MAP_H + PANEL_H))
        except pygame.error as exc:
            raise RuntimeError(f"Could not open a window ({exc}). Relaunch with --headless.") from exc
        pygame.display.set_caption("Fleetline Logistics")
        self.sim = sim
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("arial", 22)
        self.small = pygame.font.SysFont("arial", 16)
        self.running = True

        self.palette = {
            "bg": (12, 15, 24),
            "panel": (20, 25, 38),
            "panel_border": (46, 56, 80),
            "grid_line": (30, 36, 52),
            "text": (230, 236, 248),
            "muted": (161, 177, 205),
            "warehouse": (88, 193, 112),
            "order": (255, 214, 126),
            "urgent": (232, 102, 61),
            "vehicle": (98, 211, 222),
            "route": (74, 126, 230),
        }
        self.vehicle_colors = {
            VEHICLE_LOADING: (240, 190, 90),
            VEHICLE_MAINTENANCE: (150, 150, 160),
        }

    def to_screen(self, location: Location) -> Tuple[int, int]:
        return int(location.x * MAP_W), int(location.y * MAP_H)

    def handle_input(self) -> None:
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                self.running = False
            if ev.type != pygame.KEYDOWN:
                continue
            if self.sim.tutorial.show_overlay:
                if ev.key == pygame.K_ESCAPE:
                    self.sim.skip_tutorial()
                    continue
                if self.sim.tutorial.step_info.can_auto_advance:
                    self.sim.advance_tutorial()
                    continue
            if ev.key == pygame.K_ESCAPE:
                self.running = False
            elif ev.key == pygame.K_RETURN and self.sim.state.status == STATUS_MENU:
                self.sim.start()
            elif ev.key == pygame.K_SPACE:
                self.sim.toggle_pause()
            elif ev.key == pygame.K_o:
                self.sim.orders.generate_order()
            elif ev.key == pygame.K_a:
                self._assign_first_waiting_order()
            elif ev.key == pygame.K_v:
                self._buy_vehicle("van")
            elif ev.key == pygame.K_d:
                self._buy_vehicle("drone")
            elif ev.key == pygame.K_t:
                self.sim.reset_tutorial()

    def _assign_first_waiting_order(self) -> None:
        waiting = self.sim.orders.get_orders_by_priority()
        available = self.sim.vehicles.get_available_vehicles()
        if waiting and available:
            self.sim.request_assignment(available[0].id, waiting[0].id)

    def _buy_vehicle(self, vehicle_type: str) -> None:
        if not self.sim.levels.is_feature_unlocked(f"{vehicle_type}_vehicles"):
            self.sim.state.log_event(f"{vehicle_type.title()} vehicles are still locked")
            return
        depot = self.sim.state.warehouses[0].location if self.sim.state.warehouses else Location(0.5, 0.5)
        self.sim.add_vehicle(Vehicle.of_type(f"{vehicle_type}-{new_id()[:4]}", vehicle_type, depot))

    def _draw_order(self, order: Order) -> None:
        x, y = self.to_screen(order.destination)
        color = self.palette["urgent"] if order.priority.multiplier > 1.0 else self.palette["order"]
        pygame.draw.circle(self.screen, color, (x, y), 6)
        pygame.draw.circle(self.screen, (30, 34, 45), (x, y), 6, width=1)

    def _draw_vehicle(self, vehicle: Vehicle) -> None:
        x, y = self.to_screen(vehicle.location)
        if vehicle.route is not None and vehicle.status == VEHICLE_EN_ROUTE:
            points = [self.to_screen(p) for p in vehicle.route.waypoints]
            pygame.draw.lines(self.screen, self.palette["route"], False, points, 2)
        rect = pygame.Rect(0, 0, 14, 14)
        rect.center = (x, y)
        color = self.vehicle_colors.get(vehicle.status, self.palette["vehicle"])
        pygame.draw.rect(self.screen, color, rect, border_radius=4)

    def _draw_metric_card(self, x: int, y: int, w: int, title: str, value: float, hue: Tuple[int, int, int]) -> None:
        card = pygame.Rect(x, y, w, 54)
        pygame.draw.rect(self.screen, (27, 34, 48), card, border_radius=10)
        pygame.draw.rect(self.screen, (56, 68, 94), card, width=1, border_radius=10)
        self.screen.blit(self.small.render(title, True, self.palette["muted"]), (x + 10, y + 8))
        self.screen.blit(self.font.render(f"{value:5.1f}%", True, self.palette["text"]), (x + 10, y + 23))
        bar_bg = pygame.Rect(x + 96, y + 25, w - 108, 16)
        pygame.draw.rect(self.screen, (43, 49, 63), bar_bg, border_radius=8)
        fill = pygame.Rect(bar_bg.x, bar_bg.y, int(bar_bg.w * clamp(value / 100.0, 0.0, 1.0)), bar_bg.h)
        pygame.draw.rect(self.screen, hue, fill, border_radius=8)

    def _draw_overlay(self, title: str, body: str) -> None:
        box = pygame.Rect(MAP_W // 2 - 330, MAP_H // 2 - 60, 660, 120)
        pygame.draw.rect(self.screen, (27, 34, 48), box, border_radius=12)
        pygame.draw.rect(self.screen, self.palette["panel_border"], box, width=2, border_radius=12)
        self.screen.blit(self.font.render(title, True, self.palette["text"]), (box.x + 16, box.y + 14))
        self.screen.blit(self.small.render(body[:90], True, self.palette["muted"]), (box.x + 16, box.y + 54))
        if len(body) > 90:
            self.screen.blit(self.small.render(body[90:180], True, self.palette["muted"]), (box.x + 16, box.y + 76))

    def draw(self) -> None:
        sim = self.sim
        self.screen.fill(self.palette["bg"])
        for step in range(0, MAP_W + 1, MAP_W // 10):
            pygame.draw.line(self.screen, self.palette["grid_line"], (step, 0), (step, MAP_H), 1)
        for step in range(0, MAP_H + 1, MAP_H // 10):
            pygame.draw.line(self.screen, self.palette["grid_line"], (0, step), (MAP_W, step), 1)

        for warehouse in sim.state.warehouses:
            rect = pygame.Rect(0, 0, 22, 22)
            rect.center = self.to_screen(warehouse.location)
            pygame.draw.rect(self.screen, self.palette["warehouse"], rect, border_radius=5)
        for order in sim.state.orders:
            self._draw_order(order)
        for vehicle in sim.state.vehicles:
            self._draw_vehicle(vehicle)
        for popup in sim.feedback.delivery_feedbacks:
            x, y = self.to_screen(popup.location)
            self.screen.blit(self.small.render(f"+${popup.order.value:.0f}", True, (106, 212, 148)), (x + 8, y - 18))

        panel = pygame.Rect(0, MAP_H, MAP_W, PANEL_H)
        pygame.draw.rect(self.screen, self.palette["panel"], panel)
        pygame.draw.line(self.screen, self.palette["panel_border"], panel.topleft, panel.topright, 2)

        panel_y = MAP_H + 10
        level = sim.levels.current
        text = (
            f"{sim.state.status.upper()} | Budget: ${sim.state.budget:,.0f} | Score: {sim.state.score} "
            f"| Lv {level.level} {level.title} ({level.experience} XP) | Weather: {sim.weather.condition.title}"
        )
        self.screen.blit(self.small.render(text, True, self.palette["text"]), (10, panel_y))

        metrics = sim.state.performance_metrics
        card_w = (MAP_W - 40) // 3
        self._draw_metric_card(10, panel_y + 26, card_w, "On-time", metrics.on_time_delivery_rate * 100, (106, 212, 148))
        self._draw_metric_card(20 + card_w, panel_y + 26, card_w, "Satisfaction", metrics.customer_satisfaction * 100, (242, 186, 88))
        self._draw_metric_card(30 + card_w * 2, panel_y + 26, card_w, "Efficiency", metrics.efficiency * 100, (101, 189, 255))

        help_text = "Enter start | Space pause | O order | A assign | V van | D drone | T replay tutorial | Esc quit"
        self.screen.blit(self.small.render(help_text, True, self.palette["muted"]), (10, panel_y + 90))
        for idx, line in enumerate(sim.event_log[-3:]):
            self.screen.blit(self.small.render(line, True, (255, 236, 160)), (10, panel_y + 112 + idx * 20))

        if sim.tutorial.show_overlay:
            info = sim.tutorial.step_info
            self._draw_overlay(info.title, info.description)
        elif sim.levels.notification is not None:
            entry = sim.levels.notification
            unlocks = ", ".join(unlock_display_name(u) for u in entry["unlocks"])
            self._draw_overlay(f"Level {entry['level']}: {entry['title']}", f"{entry['description']}. Unlocked: {unlocks}")
        elif sim.achievements.popup is not None:
            achievement = sim.achievements.popup.type
            self._draw_overlay(f"Achievement: {achievement.title}", achievement.description)

        pygame.display.flip()

    def run(self) -> None:
        while self.running:
            dt = self.clock.tick(60) / 1000.0
            self.handle_input()
            self.sim.tick(dt)
            self.draw()
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Fleetline logistics game")
    parser.add_argument("--headless", action="store_true", help="run simulation without graphics")
    parser.add_argument("--ticks", type=int, default=600, help="headless ticks to run")
    parser.add_argument("--dt", type=float, default=1.0, help="headless timestep in game seconds")
    parser.add_argument("--seed", type=int, default=7, help="random seed")
    parser.add_argument("--settings", type=Path, default=SETTINGS_FILE, help="player settings file")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.headless:
        run_headless(args.ticks, args.dt, args.seed, args.settings)
        return

    sim = LogisticsSim(seed=args.seed, settings=JsonSettingsStore(args.settings))
    try:
        ui = GameUI(sim)
    except RuntimeError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        sys.exit(1)
    ui.run()


if __name__ == "__main__":
    main()
