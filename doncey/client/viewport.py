"""Viewport management for maps larger than the terminal."""

from dataclasses import dataclass


@dataclass
class Viewport:
    """Camera over a bottom-origin map (``y == 0`` is the lowest row)."""

    width: int
    height: int

    def calculate_camera(
        self, focus_x: int, focus_y: int, map_width: int, map_height: int
    ) -> tuple[int, int]:
        """
        Calculate camera position to center on the tracked player.

        Returns (cam_x, cam_y) - the bottom-left corner of the viewport in map coordinates.
        """
        cam_x = focus_x - self.width // 2
        cam_y = focus_y - self.height // 2

        # Maps smaller than the viewport are centered instead of scrolled
        if map_width <= self.width:
            cam_x = -(self.width - map_width) // 2
        else:
            cam_x = max(0, min(cam_x, map_width - self.width))

        if map_height <= self.height:
            cam_y = -(self.height - map_height) // 2
        else:
            cam_y = max(0, min(cam_y, map_height - self.height))

        return cam_x, cam_y

    def rows_top_down(self, cam_y: int) -> range:
        """Map rows in screen order, top of the screen first."""
        return range(cam_y + self.height - 1, cam_y - 1, -1)
