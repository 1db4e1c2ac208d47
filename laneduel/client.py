"""Desktop client: window, input loop and role selection."""
from __future__ import annotations

import argparse
import logging
import time
from typing import List, Optional

import pygame

from . import config
from .controls import Controls
from .render import Renderer
from .session import GameSession, Role
from .transport import RelayChannel

logger = logging.getLogger(__name__)


class GameClient:
    def __init__(self, session: GameSession, screen: pygame.Surface) -> None:
        self.session = session
        self.screen = screen
        self.controls = Controls()
        self.renderer = Renderer(screen, session)
        self.clock = pygame.time.Clock()
        self.running = True

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self.running = False
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_r:
            self.session.reset()
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_f:
            self.session.force_spawn_wave()
        else:
            self.controls.handle_event(event)

    def run(self) -> None:
        dt = 0.0
        while self.running:
            for event in pygame.event.get():
                self.handle_event(event)

            pointer = self.renderer.camera.to_world(pygame.mouse.get_pos())
            frame_input = self.controls.poll(pygame.key.get_pressed(), pointer)
            self.session.frame(time.perf_counter(), frame_input)

            error = self.session.take_error()
            if error:
                logger.error("%s", error)
                pygame.display.set_caption(f"{config.GAME_NAME} - {error}")

            self.renderer.draw(dt, self.controls.lock_on)
            pygame.display.flip()
            dt = self.clock.tick(config.FRAME_RATE) / 1000.0


def start_session(session: GameSession, role: str, room: str, relay: str) -> Optional[RelayChannel]:
    """Put ``session`` into ``role``; returns the started relay channel, if any."""

    if role == Role.LOCAL.value:
        session.start_local()
        return None
    room = room.strip().lower()
    channel = RelayChannel(relay, room, role)
    if role == Role.HOST.value:
        session.start_host(channel, room)
    else:
        session.start_guest(channel, room)
    channel.start()
    return channel


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{config.GAME_NAME} client")
    parser.add_argument("--role", choices=[role.value for role in Role], default=Role.LOCAL.value)
    parser.add_argument("--room", default=config.DEFAULT_ROOM)
    parser.add_argument("--relay", default=config.RELAY_URL, help="relay websocket base url")
    parser.add_argument("--log-level", default="info")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pygame.init()
    screen = pygame.display.set_mode((config.WINDOW_WIDTH, config.WINDOW_HEIGHT), pygame.RESIZABLE)
    pygame.display.set_caption(config.GAME_NAME)

    session = GameSession()
    start_session(session, args.role, args.room, args.relay)
    try:
        GameClient(session, screen).run()
    finally:
        session.end()
        pygame.quit()


if __name__ == "__main__":
    main()
