"""
On-screen preview of the channel colors.

Draws one swatch per channel in a pygame window, a stand-in for the
physical light strip while tuning colors and channel counts.
"""

import pygame

from spectrolight.core.colormap import unpack_rgb
from spectrolight.io.sinks import OutputSink


class PygamePreviewSink(OutputSink):
    """Renders each emitted frame as a row of colored swatches."""

    def __init__(
        self,
        width: int = 800,
        height: int = 120,
        gap: int = 4,
        background: tuple[int, int, int] = (5, 5, 15),
        title: str = "spectrolight",
    ):
        self.width = width
        self.height = height
        self.gap = gap
        self.background = background

        pygame.init()
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption(title)
        self.closed = False

    def pump(self) -> bool:
        """Process window events. Returns False once the window was closed."""
        if self.closed:
            return False
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.close()
                return False
        return True

    def emit(self, colors: list[int]):
        if not self.pump():
            return

        self.screen.fill(self.background)
        n = len(colors)
        if n:
            swatch_w = max(1, (self.width - self.gap * (n + 1)) // n)
            for i, color in enumerate(colors):
                x = self.gap + i * (swatch_w + self.gap)
                rect = pygame.Rect(x, self.gap, swatch_w, self.height - 2 * self.gap)
                pygame.draw.rect(self.screen, unpack_rgb(color), rect)
        pygame.display.flip()

    def close(self):
        if not self.closed:
            self.closed = True
            pygame.quit()
